"""
Mock product catalog for the competitor selection demo.

Simulates marketplace search results for a reference water bottle: strong
competitors, marginal products, accessories and premium outliers.
"""

from dataclasses import dataclass
from typing import List

WATER_BOTTLES = "Sports & Outdoors > Water Bottles"
ACCESSORIES = "Sports & Outdoors > Accessories"


@dataclass(frozen=True)
class Product:
    asin: str
    title: str
    category: str
    price: float
    rating: float
    reviews: int


def get_reference_product() -> Product:
    """The seller's product we are finding a competitor for"""
    return Product(
        asin="B0XYZ123",
        title="ProBrand Stainless Steel Water Bottle 32oz Insulated",
        category=WATER_BOTTLES,
        price=29.99,
        rating=4.2,
        reviews=1247,
    )


_CURATED_CANDIDATES = [
    # Good competitors (high review count, good ratings, appropriate price)
    Product("B0COMP01", "HydroFlask 32oz Wide Mouth Stainless Steel Water Bottle", WATER_BOTTLES, 44.99, 4.5, 8932),
    Product("B0COMP02", "Yeti Rambler 26oz Vacuum Insulated Stainless Steel Bottle", WATER_BOTTLES, 34.99, 4.4, 5621),
    Product("B0COMP07", "Stanley Adventure Quencher 30oz Insulated Tumbler", WATER_BOTTLES, 35.00, 4.3, 4102),
    Product("B0COMP08", "Contigo AUTOSEAL Stainless Steel Travel Mug 24oz", WATER_BOTTLES, 28.99, 4.4, 3854),
    Product("B0COMP09", "Simple Modern Summit Water Bottle 32oz Vacuum Insulated", WATER_BOTTLES, 26.99, 4.5, 3201),
    Product("B0COMP10", "Thermos Stainless King 40oz Beverage Bottle", WATER_BOTTLES, 32.99, 4.3, 2847),
    Product("B0COMP11", "CamelBak Chute Mag 32oz BPA Free Water Bottle", WATER_BOTTLES, 18.99, 4.2, 2156),
    Product("B0COMP12", "Nalgene Tritan Wide Mouth BPA-Free Water Bottle 32oz", WATER_BOTTLES, 15.99, 4.6, 1892),
    # Marginal products (pass some filters, fail others)
    Product("B0COMP13", "Iron Flask Sports Water Bottle 40oz", WATER_BOTTLES, 29.99, 3.7, 1543),
    Product("B0COMP14", "MIRA Stainless Steel Vacuum Insulated Water Bottle 32oz", WATER_BOTTLES, 24.99, 4.4, 87),
    # Poor matches (fail multiple filters)
    Product("B0COMP03", "Generic Plastic Water Bottle 24oz", WATER_BOTTLES, 8.99, 3.2, 45),
    Product("B0COMP15", "Budget Water Bottle 20oz BPA Free", WATER_BOTTLES, 7.49, 3.5, 234),
    # Accessories and false positives
    Product("B0COMP04", "Water Bottle Cleaning Brush Set with Sponge", "Sports & Outdoors > Cleaning Supplies", 12.99, 4.6, 3421),
    Product("B0COMP05", "Replacement Lid for HydroFlask Wide Mouth Bottles", "Sports & Outdoors > Replacement Parts", 9.99, 4.3, 892),
    Product("B0COMP06", "Insulated Water Bottle Carrier Bag with Shoulder Strap", "Sports & Outdoors > Bags & Cases", 14.99, 4.2, 567),
    Product("B0COMP16", "Silicone Sleeve for 32oz Water Bottles - Protection Cover", ACCESSORIES, 11.99, 4.1, 423),
    # Premium products (too expensive)
    Product("B0COMP17", "Premium Titanium Water Bottle 32oz Ultra-Light", WATER_BOTTLES, 89.00, 4.8, 234),
    Product("B0COMP18", "Luxury Stainless Steel Bottle with Smart Temperature Display", "Sports & Outdoors > Smart Water Bottles", 79.99, 4.3, 156),
    # Additional competitive products
    Product("B0COMP19", "Owala FreeSip Insulated Stainless Steel Water Bottle 32oz", WATER_BOTTLES, 32.99, 4.6, 1678),
    Product("B0COMP20", "Takeya Actives Insulated Stainless Steel Bottle 32oz", WATER_BOTTLES, 24.99, 4.5, 1432),
]

_BRANDS = ["TechBottle", "AquaFlow", "HydroMax", "SteelPro", "CoolFlow"]
_FEATURES = ["Insulated", "Vacuum Sealed", "Double Wall", "Leak-Proof", "Wide Mouth"]
_ACCESSORY_NAMES = ["Bottle Brush", "Carrying Strap", "Cleaning Tablets", "Ice Cube Tray"]


def _generated_title(index: int, is_competitor: bool) -> str:
    if is_competitor:
        brand = _BRANDS[index % len(_BRANDS)]
        feature = _FEATURES[index % len(_FEATURES)]
        size = 20 + (index % 3) * 8  # 20, 28 or 36 oz
        return f"{brand} {feature} Stainless Steel Water Bottle {size}oz"
    return f"{_ACCESSORY_NAMES[index % len(_ACCESSORY_NAMES)]} for Water Bottles"


def get_candidate_products() -> List[Product]:
    """50 search results: the curated 20 plus 30 generated fillers"""
    products = list(_CURATED_CANDIDATES)

    for i in range(21, 51):
        is_competitor = i % 3 != 0  # ~67% are actual bottles
        is_good_match = i % 4 == 0  # ~25% are good matches

        products.append(Product(
            asin=f"B0COMP{i:02d}",
            title=_generated_title(i, is_competitor),
            category=WATER_BOTTLES if is_competitor else ACCESSORIES,
            price=25.0 + (i % 20) if is_good_match else (9.99 if i % 2 == 0 else 65.99),
            rating=4.0 + (i % 10) * 0.05 if is_good_match else 3.0 + (i % 8) * 0.1,
            reviews=500 + i * 50 if is_good_match else 20 + i * 10,
        ))

    return products
