"""Customers: CRUD with search and pagination."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from jewelbill.api.deps import get_db
from jewelbill.core.audit import AuditLog
from jewelbill.core.exceptions import BusinessError
from jewelbill.models.customer import Customer
from jewelbill.schemas.common import Pagination
from jewelbill.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse, CustomerList

router = APIRouter()


def _get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise BusinessError.not_found("Customer", reason=f"id={customer_id}")
    return customer


@router.get("", response_model=CustomerList)
def list_customers(
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Newest first; search matches name, email or phone."""
    q = db.query(Customer)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(
            Customer.name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))
    total = q.count()
    customers = (
        q.order_by(Customer.created_at.desc(), Customer.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return CustomerList(customers=customers, pagination=Pagination.build(page, limit, total))


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    return _get_customer(db, customer_id)


@router.post("", response_model=CustomerResponse, status_code=201)
def create_customer(data: CustomerCreate, db: Session = Depends(get_db)):
    values = data.model_dump()
    if data.address is None:
        values["address"] = {"country": "India"}
    customer = Customer(**values)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    AuditLog.log_action("create", "customer", customer.id, changes={"name": customer.name})
    return customer


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(customer_id: int, data: CustomerUpdate, db: Session = Depends(get_db)):
    """Patch the fields sent; past invoices keep their customer snapshot."""
    customer = _get_customer(db, customer_id)
    updates = data.model_dump(exclude_unset=True)
    for field, value in updates.items():
        setattr(customer, field, value)
    db.commit()
    db.refresh(customer)
    AuditLog.log_action("update", "customer", customer.id, changes={"fields": sorted(updates)})
    return customer


@router.delete("/{customer_id}", response_model=dict)
def delete_customer(customer_id: int, db: Session = Depends(get_db)):
    customer = _get_customer(db, customer_id)
    db.delete(customer)
    db.commit()
    AuditLog.log_action("delete", "customer", customer_id)
    return {"message": "Customer deleted successfully", "id": customer_id}
