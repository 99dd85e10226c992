def test_defaults_created_on_first_read(client):
    s = client.get("/settings").json()
    assert s["shop_name"] == "M J Jewellers"
    assert s["cgst_rate"] == 1.5
    assert s["sgst_rate"] == 1.5
    assert s["gold_rate"] == 65000
    assert s["silver_rate"] == 75000
    assert [(p["name"], p["rate_per_ten_gram"]) for p in s["product_types"]] == [
        ("Gold 24K", 65000), ("Gold 22K", 59500), ("Gold 18K", 48750), ("Silver", 75000),
    ]


def test_shop_info_update(client):
    s = client.patch("/settings/shop-info", json={
        "shop_name": "",
        "address": "12 Jewel Street, Thrissur",
        "email": "Shop@MJ.in",
        "gst_number": "32aaaaa0000a1z5",
    }).json()
    # Blank shop name is ignored
    assert s["shop_name"] == "M J Jewellers"
    assert s["address"] == "12 Jewel Street, Thrissur"
    assert s["email"] == "shop@mj.in"
    assert s["gst_number"] == "32AAAAA0000A1Z5"
    assert s["cgst_rate"] == 1.5


def test_tax_and_metal_rates(client):
    s = client.patch("/settings/tax", json={"cgst_rate": 2.5}).json()
    assert s["cgst_rate"] == 2.5
    assert s["sgst_rate"] == 1.5
    assert client.patch("/settings/tax", json={"sgst_rate": 101}).status_code == 422

    s = client.patch("/settings/metal-rates", json={"gold_rate": 71000}).json()
    assert s["gold_rate"] == 71000
    assert s["silver_rate"] == 75000


def test_replace_product_types(client):
    s = client.put("/settings/product-types", json={"product_types": [
        {"name": "Gold 22K", "rate_per_ten_gram": 61000},
        {"name": "Platinum", "rate_per_ten_gram": 32000},
    ]}).json()
    assert [p["name"] for p in s["product_types"]] == ["Gold 22K", "Platinum"]
    assert s["product_types"][1]["rate_per_ten_gram"] == 32000


def test_full_update_and_reset(client):
    client.put("/settings", json={"shop_name": "MJ Gold", "cgst_rate": 3, "product_types": []})
    s = client.get("/settings").json()
    assert s["shop_name"] == "MJ Gold"
    assert s["cgst_rate"] == 3
    assert s["product_types"] == []

    s = client.post("/settings/reset").json()
    assert s["shop_name"] == "M J Jewellers"
    assert s["cgst_rate"] == 1.5
    assert len(s["product_types"]) == 4
