"""HTTP contract tests: status codes, error bodies and response shapes."""


def _sale_payload(product_id, qty, number="INV-R1", **extra):
    payload = {
        "invoice_number": number,
        "customer_name": "Walk-in",
        "date_of_sale": "2024-03-01",
        "discount_cents": 0,
        "items": [{"product_id": product_id, "quantity": qty}],
    }
    payload.update(extra)
    return payload


def test_health(client, db_session):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json()["checks"]["database"]["status"] == "healthy"


def test_grn_then_get(client, db_session):
    resp = client.post("/api/grn", json={
        "grn_number": "GRN-R1",
        "supplier_name": "Metro",
        "date_received": "2024-02-01",
        "items": [{"product_code": "R-1", "description": "Horn", "quantity": 3, "unit_price_cents": 400}],
    })

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["grn"]["lines"][0]["product_code"] == "R-1"

    resp = client.get(f"/api/grn/{body['grn_id']}")
    assert resp.status_code == 200
    assert resp.get_json()["grn"]["grn_number"] == "GRN-R1"


def test_sale_created(client, db_session, make_product, stock_of):
    product = make_product(stock=10, threshold=0, price_cents=250)

    resp = client.post("/api/sales", json=_sale_payload(product.id, 4))

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["invoice"]["total_amount_cents"] == 1000
    assert body["invoice"]["items"][0]["product_code"] == product.product_code
    assert stock_of(product.id) == 6


def test_sale_insufficient_stock_body(client, db_session, make_product, stock_of):
    product = make_product("SHORT-1", stock=2)

    resp = client.post("/api/sales", json=_sale_payload(product.id, 3))

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["code"] == "INSUFFICIENT_STOCK"
    assert body["details"] == {
        "product_id": product.id,
        "product_code": "SHORT-1",
        "requested": 3,
        "available": 2,
    }
    assert "SHORT-1" in body["error"]
    assert stock_of(product.id) == 2


def test_sale_validation_and_duplicate(client, db_session, make_product):
    product = make_product(stock=10, threshold=0)

    resp = client.post("/api/sales", json={"invoice_number": "INV-V"})
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "VALIDATION_ERROR"

    assert client.post("/api/sales", json=_sale_payload(product.id, 1, "INV-D")).status_code == 201
    resp = client.post("/api/sales", json=_sale_payload(product.id, 1, "INV-D"))
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "DUPLICATE_DOCUMENT_NUMBER"


def test_sale_unknown_product_is_404(client, db_session):
    resp = client.post("/api/sales", json=_sale_payload(999, 1))

    assert resp.status_code == 404
    assert resp.get_json()["code"] == "PRODUCT_NOT_FOUND"


def test_invoice_by_number_and_pdf(client, db_session, make_product):
    product = make_product(stock=10, threshold=0)
    created = client.post("/api/sales", json=_sale_payload(product.id, 2, "INV/2024/7")).get_json()

    resp = client.get("/api/sales/invoices/INV-NOPE")
    assert resp.status_code == 404

    resp = client.get(f"/api/sales/invoices/{created['invoice_id']}/pdf")
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert resp.data.startswith(b"%PDF")

    assert client.get("/api/sales/invoices/99999/pdf").status_code == 404


def test_credit_note_flow(client, db_session, make_product, stock_of):
    product = make_product(stock=10, threshold=0, price_cents=1000)
    invoice_id = client.post("/api/sales", json=_sale_payload(product.id, 3)).get_json()["invoice_id"]

    resp = client.post("/api/credit-notes", json={
        "credit_note_number": "CN-R1",
        "invoice_id": invoice_id,
        "date_of_return": "2024-03-02",
        "remarks": "Faulty",
        "discount_percent": 5,
        "items": [{"product_id": product.id, "quantity": 2}],
    })
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["credit_note"]["grand_total_cents"] == 1900
    assert stock_of(product.id) == 9

    resp = client.post("/api/credit-notes", json={
        "credit_note_number": "CN-R2",
        "invoice_id": invoice_id,
        "date_of_return": "2024-03-03",
        "items": [{"product_id": product.id, "quantity": 2}],
    })
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "RETURN_EXCEEDS_ORIGINAL"

    resp = client.get(f"/api/credit-notes/{body['credit_note_id']}")
    assert resp.status_code == 200
    assert resp.get_json()["remarks"] == "Faulty"

    resp = client.get(f"/api/credit-notes/{body['credit_note_id']}/pdf")
    assert resp.status_code == 200
    assert resp.data.startswith(b"%PDF")


def test_credit_note_unknown_invoice(client, db_session, make_product):
    product = make_product()

    resp = client.post("/api/credit-notes", json={
        "credit_note_number": "CN-404",
        "invoice_id": 404,
        "date_of_return": "2024-03-02",
        "items": [{"product_id": product.id, "quantity": 1}],
    })

    assert resp.status_code == 404
    assert resp.get_json()["code"] == "INVOICE_NOT_FOUND"


def test_issue_order_and_reps(client, db_session, make_product, make_rep, stock_of):
    product = make_product(stock=8)
    rep = make_rep("Sunil")

    reps = client.get("/api/users?role=Rep").get_json()["items"]
    assert [r["name"] for r in reps] == ["Sunil"]
    assert client.get("/api/users?role=Boss").status_code == 400

    resp = client.post("/api/issue-orders", json={
        "issue_order_number": "IO-R1",
        "rep_id": rep.id,
        "date_of_order": "2024-03-04",
        "items": [{"product_id": product.id, "quantity": 5}],
    })
    assert resp.status_code == 201
    order_id = resp.get_json()["issue_order_id"]
    assert stock_of(product.id) == 3

    resp = client.get(f"/api/issue-orders/{order_id}")
    assert resp.get_json()["issue_order"]["rep_name"] == "Sunil"


def test_dashboard_and_alerts(client, db_session, make_product):
    product = make_product(stock=10, threshold=5, description="Fan Belt")
    client.post("/api/sales", json=_sale_payload(product.id, 7))

    stats = client.get("/api/dashboard/stats").get_json()
    assert stats["low_stock_count"] == 1
    assert stats["active_alerts"][0]["message"] == "Low stock alert for Fan Belt: 3 remaining."

    alerts = client.get("/api/alerts?limit=1").get_json()
    assert alerts["count"] == 1


def test_product_endpoints(client, db_session):
    resp = client.post("/api/products", json={"product_code": "API-1", "unit_price_cents": 500})
    assert resp.status_code == 201
    product_id = resp.get_json()["product"]["id"]

    assert client.post("/api/products", json={"product_code": "API-1"}).status_code == 409

    resp = client.put(f"/api/products/{product_id}", json={"current_stock": 99})
    assert resp.status_code == 400

    resp = client.put(f"/api/products/{product_id}", json={"brand": "Acme"})
    assert resp.status_code == 200
    assert resp.get_json()["product"]["brand"] == "Acme"
    assert resp.get_json()["product"]["current_stock"] == 0

    assert client.get("/api/products/4040").status_code == 404
    listing = client.get("/api/products?low_stock=true").get_json()
    assert listing["count"] == 1


def test_customer_endpoints(client, db_session, make_product):
    resp = client.post("/api/customers", json={"customer_name": "Route Customer"})
    assert resp.status_code == 201
    customer_id = resp.get_json()["customer"]["id"]

    resp = client.put(f"/api/customers/{customer_id}", json={"contact_number": "0700000000"})
    assert resp.get_json()["customer"]["contact_number"] == "0700000000"

    product = make_product(stock=5, threshold=0)
    client.post("/api/sales", json=_sale_payload(product.id, 1, customer_id=customer_id))

    resp = client.delete(f"/api/customers/{customer_id}")
    assert resp.status_code == 409

    other_id = client.post("/api/customers", json={"customer_name": "Disposable"}).get_json()["customer"]["id"]
    assert client.delete(f"/api/customers/{other_id}").status_code == 200
    assert client.get(f"/api/customers/{other_id}").status_code == 404


def test_cors_header_for_allowed_origin(client, db_session):
    resp = client.get("/health", headers={"Origin": "http://localhost:5173"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    resp = client.get("/health", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers
