from __future__ import annotations

import random
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from modules.catalog.models import Product, Station, Supplier, SupplierProduct


class Command(BaseCommand):
    help = "Seed the reference data (stations, suppliers, products, terms)."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding reference data...")

        with transaction.atomic():
            stations = self._seed_stations()
            suppliers = self._seed_suppliers()
            products = self._seed_products()
            terms_created = self._seed_terms(suppliers, products)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"stations={len(stations)}, "
                f"suppliers={len(suppliers)}, "
                f"products={len(products)}, "
                f"terms={terms_created}"
            )
        )
        for station in stations:
            self.stdout.write(f"  station {station.code}: {station.id}")
        for supplier in suppliers:
            self.stdout.write(f"  supplier {supplier.code}: {supplier.id}")

    def _seed_stations(self) -> list[Station]:
        self.stdout.write("Creating stations...")
        stations: list[Station] = []
        for code, name in [
            ("ST-LYO", "Station Lyon Part-Dieu"),
            ("ST-MRS", "Station Marseille Saint-Charles"),
            ("ST-BDX", "Station Bordeaux Saint-Jean"),
        ]:
            station, _ = Station.objects.get_or_create(
                code=code, defaults={"name": name, "is_active": True}
            )
            stations.append(station)
        return stations

    def _seed_suppliers(self) -> list[Supplier]:
        self.stdout.write("Creating suppliers...")
        suppliers: list[Supplier] = []
        for code, name in [
            ("SUP-CARTO", "Cartonnages du Rhône"),
            ("SUP-FILM", "Films et Emballages SA"),
            ("SUP-PAL", "Palettes Services"),
        ]:
            supplier, _ = Supplier.objects.get_or_create(
                code=code, defaults={"name": name, "is_active": True}
            )
            suppliers.append(supplier)
        return suppliers

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        for sku, name in [
            ("BOX-S", "Carton simple cannelure 30x20x15"),
            ("BOX-M", "Carton double cannelure 40x30x30"),
            ("BOX-L", "Carton double cannelure 60x40x40"),
            ("FILM-ST", "Film étirable 23µ"),
            ("TAPE-50", "Ruban adhésif 50mm"),
            ("PAL-EUR", "Palette Europe 800x1200"),
            ("CORNER", "Cornière carton 35x35"),
        ]:
            product, _ = Product.objects.get_or_create(
                sku=sku, defaults={"name": name, "is_active": True}
            )
            products.append(product)
        return products

    def _seed_terms(self, suppliers: list[Supplier], products: list[Product]) -> int:
        self.stdout.write("Creating supplier terms...")
        created_count = 0
        for supplier in suppliers:
            for product in random.sample(products, k=4):
                _, created = SupplierProduct.objects.get_or_create(
                    supplier=supplier,
                    product=product,
                    defaults={
                        "unit_price": Decimal(random.randint(50, 2500)) / 100,
                        "packaging_unit": random.choice(["unit", "bundle", "roll"]),
                        "quantity_per_package": random.choice([1, 10, 25, 50]),
                        "supplier_reference": f"{supplier.code}-{product.sku}",
                    },
                )
                created_count += int(created)
        return created_count
