"""
Concurrency tests for the sale engine.

Uses a file-backed SQLite database so that each thread gets its own
connection; two sales race for the last unit of a variant.
"""

import threading

import pytest

from retail_pos import create_app
from retail_pos.errors import InsufficientStock
from retail_pos.extensions import db
from retail_pos.models import Product, Sale, Variant
from retail_pos.services import sales_service
from retail_pos.validation import parse_sale_request


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'concurrency.db'}",
        'SALE_RETRY_BACKOFF': 0,
    })
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.session.remove()
        db.engine.dispose()


def _seed_variant(app, stock):
    with app.app_context():
        product = Product(name="Campera Puffer")
        db.session.add(product)
        db.session.flush()
        variant = Variant(
            product_id=product.id,
            size="M",
            color="Negro",
            stock=stock,
            cost_price_cents=20000,
            sell_price_cents=50000,
            sku="CAM-M-NEG-0001",
        )
        db.session.add(variant)
        db.session.commit()
        return variant.id


def _race(app, variant_id, workers, quantity=1):
    barrier = threading.Barrier(workers)
    results = []
    lock = threading.Lock()

    def worker():
        request = parse_sale_request({
            "items": [{"variantId": variant_id, "quantity": quantity, "priceAtSale": "500.00"}],
            "payments": [{"method": "cash", "amount": str(500 * quantity)}],
        })
        with app.app_context():
            try:
                barrier.wait()
                outcome = sales_service.record_sale(
                    request,
                    session=db.session,
                    attempts=5,
                    backoff_base=0.01,
                )
                with lock:
                    results.append(outcome)
            except Exception as exc:
                with lock:
                    results.append(exc)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def test_last_unit_sold_exactly_once(file_app):
    variant_id = _seed_variant(file_app, stock=1)

    results = _race(file_app, variant_id, workers=2)

    assert not [r for r in results if isinstance(r, Exception)], results
    committed = [r for r in results if r.ok]
    rejected = [r for r in results if not r.ok]
    assert len(committed) == 1
    assert len(rejected) == 1
    assert isinstance(rejected[0].error, InsufficientStock)

    with file_app.app_context():
        assert db.session.get(Variant, variant_id).stock == 0
        assert db.session.query(Sale).count() == 1


def test_stock_never_negative_under_contention(file_app):
    variant_id = _seed_variant(file_app, stock=5)

    results = _race(file_app, variant_id, workers=4, quantity=2)

    committed = [r for r in results if not isinstance(r, Exception) and r.ok]
    assert len(committed) == 2

    with file_app.app_context():
        assert db.session.get(Variant, variant_id).stock == 1
        assert db.session.query(Sale).count() == 2
