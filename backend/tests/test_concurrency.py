# Overview: Threaded concurrency tests for the stock-affecting units of work.

"""
Scripted concurrency tests for SMS.

Each test runs real threads against a temporary file database so SQLite's
write lock (BEGIN IMMEDIATE) is exercised the way it is in production.

Run with:
    pytest backend/tests/test_concurrency.py
"""
import os
import tempfile
import threading
import unittest

from sms import create_app
from sms.errors import DuplicateDocumentNumber, InsufficientStock
from sms.extensions import db
from sms.models import Alert, GoodsReceivedNote, Product, SalesInvoice
from sms.services import issue_service, receive_service, sales_service


class ConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"timeout": 30}},
            "COMMIT_RETRY_ATTEMPTS": 5,
            "COMMIT_RETRY_BACKOFF": 0.01,
        })

        with self.app.app_context():
            db.drop_all()
            db.create_all()

            product = Product(
                product_code="CONCUR-1",
                description="Concurrent Product",
                unit_price_cents=1000,
                current_stock=10,
                min_stock_threshold=5,
            )
            db.session.add(product)
            db.session.commit()
            self.product_id = product.id

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run_threads(self, targets):
        threads = [threading.Thread(target=t) for t in targets]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

    def _stock(self):
        with self.app.app_context():
            return db.session.get(Product, self.product_id).current_stock

    def _sell_worker(self, number, quantity, results, lock):
        def worker():
            with self.app.app_context():
                try:
                    sales_service.create_sale(
                        invoice_number=number,
                        customer_name="Walk-in",
                        date_of_sale="2024-03-01",
                        lines=[{"product_id": self.product_id, "quantity": quantity}],
                    )
                    with lock:
                        results.append("sold")
                except Exception as exc:
                    with lock:
                        results.append(exc)
                finally:
                    db.session.remove()
        return worker

    def test_concurrent_sales_cannot_oversell(self):
        results = []
        lock = threading.Lock()

        self._run_threads([
            self._sell_worker("INV-A", 6, results, lock),
            self._sell_worker("INV-B", 6, results, lock),
        ])

        sold = [r for r in results if r == "sold"]
        failures = [r for r in results if r != "sold"]
        self.assertEqual(len(sold), 1)
        self.assertEqual(len(failures), 1)
        self.assertIsInstance(failures[0], InsufficientStock)
        self.assertEqual(self._stock(), 4)

    def test_many_small_sales_drain_exactly(self):
        results = []
        lock = threading.Lock()

        self._run_threads([
            self._sell_worker(f"INV-{i}", 1, results, lock) for i in range(12)
        ])

        sold = [r for r in results if r == "sold"]
        self.assertEqual(len(sold), 10)
        self.assertTrue(all(isinstance(r, InsufficientStock) for r in results if r != "sold"))
        self.assertEqual(self._stock(), 0)

        with self.app.app_context():
            self.assertEqual(db.session.query(SalesInvoice).count(), 10)
            # every sale from stock 4 downwards left the product below threshold
            self.assertEqual(db.session.query(Alert).count(), 5)

    def test_duplicate_invoice_number_race(self):
        results = []
        lock = threading.Lock()

        self._run_threads([
            self._sell_worker("INV-SAME", 1, results, lock) for _ in range(5)
        ])

        sold = [r for r in results if r == "sold"]
        self.assertEqual(len(sold), 1)
        self.assertTrue(all(isinstance(r, DuplicateDocumentNumber) for r in results if r != "sold"))
        self.assertEqual(self._stock(), 9)

    def test_duplicate_grn_number_race(self):
        results = []
        lock = threading.Lock()

        def receiver():
            with self.app.app_context():
                try:
                    receive_service.receive_goods(
                        grn_number="GRN-SAME",
                        supplier_name="Metro",
                        date_received="2024-02-01",
                        lines=[{"product_code": "CONCUR-1", "quantity": 3, "unit_price_cents": 500}],
                    )
                    with lock:
                        results.append("received")
                except Exception as exc:
                    with lock:
                        results.append(exc)
                finally:
                    db.session.remove()

        self._run_threads([receiver for _ in range(5)])

        self.assertEqual(results.count("received"), 1)
        self.assertTrue(all(isinstance(r, DuplicateDocumentNumber) for r in results if r != "received"))
        self.assertEqual(self._stock(), 13)

        with self.app.app_context():
            self.assertEqual(db.session.query(GoodsReceivedNote).count(), 1)

    def test_receive_and_issue_interleave(self):
        results = []
        lock = threading.Lock()

        def receiver(i):
            def worker():
                with self.app.app_context():
                    try:
                        receive_service.receive_goods(
                            grn_number=f"GRN-{i}",
                            supplier_name="Metro",
                            date_received="2024-02-01",
                            lines=[{"product_code": "CONCUR-1", "quantity": 2, "unit_price_cents": 500}],
                        )
                        with lock:
                            results.append("received")
                    except Exception as exc:
                        with lock:
                            results.append(exc)
                    finally:
                        db.session.remove()
            return worker

        def issuer(i):
            def worker():
                with self.app.app_context():
                    try:
                        issue_service.issue_stock(
                            issue_order_number=f"IO-{i}",
                            date_of_order="2024-02-02",
                            lines=[{"product_id": self.product_id, "quantity": 1}],
                        )
                        with lock:
                            results.append("issued")
                    except Exception as exc:
                        with lock:
                            results.append(exc)
                    finally:
                        db.session.remove()
            return worker

        targets = []
        for i in range(5):
            targets.append(receiver(i))
            targets.append(issuer(i))
        self._run_threads(targets)

        self.assertEqual(results.count("received"), 5)
        self.assertEqual(results.count("issued"), 5)
        self.assertEqual(self._stock(), 10 + 5 * 2 - 5)


if __name__ == "__main__":
    unittest.main()
