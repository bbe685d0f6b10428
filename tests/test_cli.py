# tests/test_cli.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from sitecatalog import cli
from sitecatalog.db.database import create_tables
from sitecatalog.exceptions import ValidationError
from sitecatalog.store import CatalogStore

CSV_TEXT = """name,description,price,member_price,inventory,category
Canvas Tote,Cotton bag,$12.50,10,5,Bags
Leather Wallet,,"1,299.00",,2,Bags
Sun Hat,Straw,8,,0,Hats
,Missing name,5,,1,Bags
Scarf,Wool,4,,-3,
"""


@pytest.fixture
def database_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    engine = create_engine(url)
    create_tables(engine)
    engine.dispose()
    return url


@pytest.mark.parametrize("raw,expected", [
    ("", None),
    ("$12.50", 13),
    ("1,299.00", 1299),
    ("1.299,00", 1299),
    ("12,5", 13),
    ("0.49", 0),
    ("EUR 7", 7),
])
def test_parse_price(raw, expected):
    assert cli.parse_price(raw) == expected


def test_map_row_rejects_bad_rows():
    with pytest.raises(ValidationError):
        cli.map_row({"name": ""})
    with pytest.raises(ValidationError):
        cli.map_row({"name": "Scarf", "inventory": "-3"})
    assert cli.map_row({"name": "Scarf", "price": "4"}) == {
        "name": "Scarf", "description": None, "price": 4, "member_price": None,
    }


def test_seed_command(tmp_path, database_url):
    csv_path = tmp_path / "products.csv"
    csv_path.write_text(CSV_TEXT, encoding="utf-8")

    exit_code = cli.main(["--database-url", database_url, "seed", "--site-id", "23", "--csv", str(csv_path)])
    # Two malformed rows are skipped and reported
    assert exit_code == 1

    engine = create_engine(database_url)
    session = sessionmaker(bind=engine)()
    try:
        store = CatalogStore.for_site(session, 23)
        products = store.products.list_products().products
        assert sorted(p.name for p in products) == ["Canvas Tote", "Leather Wallet", "Sun Hat"]
        categories = {c.name: c.category_id for c in store.categories.list_categories()}
        assert set(categories) == {"Bags", "Hats"}
        bags = store.products.list_products({"category_id": categories["Bags"]}).products
        assert sorted(p.price for p in bags) == [13, 1299]
    finally:
        session.close()
        engine.dispose()


def test_code_command(database_url, capsys):
    engine = create_engine(database_url)
    session = sessionmaker(bind=engine)()
    product_id = CatalogStore.for_site(session, 23).products.create({"name": "Mug"})
    session.close()
    engine.dispose()

    assert cli.main(["--database-url", database_url, "code", "--site-id", "23", "--product-id", str(product_id)]) == 0
    assert capsys.readouterr().out.strip() == f"D{product_id:011d}"


def test_code_command_missing_product(database_url):
    assert cli.main(["--database-url", database_url, "code", "--site-id", "23", "--product-id", "99"]) == 1
