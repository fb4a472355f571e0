"""Example 02: Schema Evolution and Bulk Import.

This example demonstrates:
- A newer record definition widening an existing table on first use
- Previewing and applying reconciliation explicitly
- Ingesting a JSON document of grouped records with RecordCollection
"""

from autotable import AutotableConfig, Float32, Manager, Record, RecordCollection


class ProductV1(Record, table="products"):
    sku: str
    name: str


class Product(Record, table="products"):
    sku: str
    name: str
    price: Float32 = 0.0
    in_stock: bool = True


class Catalog(RecordCollection[Product]):
    featured: list[Product]
    clearance: tuple[Product, ...] = ()


CATALOG = """
{
    "featured": [
        {"sku": "W-1", "name": "Widget", "price": 9.99},
        {"sku": "G-1", "name": "Gizmo", "price": 24.5}
    ],
    "clearance": [{"sku": "D-9", "name": "Doohickey", "price": 1.0, "in_stock": false}],
    "generated_at": "2024-01-01"
}
"""


def main():
    """Run the schema evolution example."""
    print("=" * 80)
    print("EXAMPLE 02: SCHEMA EVOLUTION AND BULK IMPORT")
    print("=" * 80)

    config = AutotableConfig(data_dir="tmp", default_store="catalog")
    old = Manager(ProductV1, config)
    old.drop_table()

    legacy = old.create()
    legacy.sku = "L-0"
    legacy.name = "Legacy thing"
    legacy.save()
    print(f"\nColumns before: {list(old.store.table_columns('products'))}")

    products = Manager(Product, config)
    print("\nReconciling the newer definition:")
    for sql in products.reconcile():
        print(f"  {sql}")
    print(f"Columns after: {list(products.store.table_columns('products'))}")

    # Columns added after the row was written decode to zero values.
    print(f"\nLegacy row seen through the new type: {products.find(legacy.id)!r}")

    catalog = products.create_collection(CATALOG, Catalog)
    catalog.save()
    print(f"\nImported {len(catalog)} products:")
    for product in products.where("sku != ?", ["L-0"], order_by="price DESC"):
        print(f"  - {product.sku}: {product.name} @ {product.price:.2f}")

    products.close_store()


if __name__ == "__main__":
    main()
