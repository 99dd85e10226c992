"""Seed a few customers and invoices for local development."""
from jewelbill.db.init_db import init_db
from jewelbill.db.session import SessionLocal
from jewelbill.models.customer import Customer
from jewelbill.services.invoice_service import create_invoice, record_cash_payment


def seed_demo_data():
    init_db()
    db = SessionLocal()
    try:
        if db.query(Customer).count():
            print("✓ Customers already exist, skipping seed")
            return

        customers = [
            Customer(name="Priya Nair", phone="+91-9847012345", email="priya@example.com",
                     address={"city": "Kochi", "state": "Kerala", "country": "India"}),
            Customer(name="Rahul Menon", phone="+91-9895098765",
                     address={"city": "Thrissur", "state": "Kerala", "country": "India"}),
        ]
        db.add_all(customers)
        db.commit()

        # Fully paid necklace, shop tax rates
        necklace = create_invoice(db, {
            "customer_id": customers[0].id,
            "items": [{"description": "Necklace", "item_type": "Gold 22K", "hsn_code": "7113",
                       "gross_weight": 24.5, "less_weight": 1.2, "labour_charge_rate": 450}],
            "cash_received": 0,
        })
        record_cash_payment(db, necklace.id, necklace.total)

        # Ring with old gold exchange, part paid
        create_invoice(db, {
            "customer_id": customers[1].id,
            "items": [{"description": "Ring", "gross_weight": 6.2, "less_weight": 0.4,
                       "rate_per_ten_gram": 59500, "labour_charge_rate": 300, "pieces": 1}],
            "old_gold_weight": 3.1,
            "old_gold_amount": 16500,
            "cash_received": 10000,
        })

        for c in customers:
            db.refresh(c)
            for inv in c.invoices:
                print(f"  📌 {inv.invoice_number} {c.name}: total ₹{inv.total:,.0f} "
                      f"balance ₹{inv.balance_amount:,.0f} [{inv.status}]")
        print(f"\n✅ Seeded {len(customers)} customers")
    finally:
        db.close()


if __name__ == "__main__":
    seed_demo_data()
