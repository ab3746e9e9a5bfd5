"""
Competitor catalogue scraper: products, prices and pricing aggregates.
"""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup, Tag

from app.scraping import extraction
from app.scraping.base import ScraperBase
from app.scraping.types import Extraction

CURRENCY_BY_SYMBOL = (
    ("€", "EUR"),
    ("£", "GBP"),
    ("¥", "JPY"),
    ("₹", "INR"),
    ("₨", "MUR"),
)
DEFAULT_CURRENCY = "USD"
RATING_REGEX = re.compile(r"\d+(?:\.\d+)?")

PRODUCT_FIELDS = (
    "name",
    "price",
    "description",
    "category",
    "stock",
    "rating",
    "reviews",
    "image",
    "link",
)


def detect_currency(price_text: str) -> str:
    for symbol, code in CURRENCY_BY_SYMBOL:
        if symbol in price_text:
            return code
    return DEFAULT_CURRENCY


class CompetitorScraper(ScraperBase):
    """
    Extracts product cards from a competitor listing page.
    """

    scrape_type = "competitor_analysis"
    DEFAULT_DELAY_SECONDS = 2.0
    DEFAULT_RETRIES = 2
    DEFAULT_SELECTORS = {
        "product": ".product, .item, [data-product]",
        "name": ".product-title, .item-title, h3, h4",
        "price": ".price, .cost, .amount, [data-price]",
        "description": ".description, .summary, .excerpt",
        "category": ".category, .type, .tag",
        "stock": ".stock, .availability",
        "rating": ".rating, .stars, [data-rating]",
        "reviews": ".reviews, .review-count",
        "image": "img, [data-image]",
        "link": "a",
    }

    def extract(self, *, soup: BeautifulSoup, url: str) -> Extraction:
        selectors = self.selectors
        coverage = extraction.CoverageTracker(PRODUCT_FIELDS)

        products: list[dict[str, Any]] = []
        for node in soup.select(selectors["product"]):
            product = self._extract_product(node, selectors=selectors, base_url=url, coverage=coverage)
            if product is not None:
                products.append(product)

        prices = [item["price"] for item in products if item["price"] is not None]
        average_price = sum(prices) / len(prices) if prices else None
        content = {
            "products": products,
            "average_price": average_price,
            "price_range": {
                "min": min(prices) if prices else None,
                "max": max(prices) if prices else None,
            },
            "currency": products[0]["currency"] if products else DEFAULT_CURRENCY,
            "total_products": len(products),
        }
        return Extraction(
            content=content,
            metadata={
                "products_found": len(products),
                "average_price": average_price,
            },
            coverage=coverage.ratio,
            missing_fields=coverage.missing if products else ["product"],
        )

    @staticmethod
    def _extract_product(
        node: Tag,
        *,
        selectors: dict[str, str],
        base_url: str,
        coverage: extraction.CoverageTracker,
    ) -> dict[str, Any] | None:
        name = extraction.text(node, selectors["name"])
        if not name:
            return None

        price_text = extraction.text(node, selectors["price"])
        stock_text = extraction.text(node, selectors["stock"])
        rating_text = extraction.text(node, selectors["rating"])
        reviews_text = extraction.text(node, selectors["reviews"])
        image_url = extraction.attribute(node, selectors["image"], "src")
        link_url = extraction.attribute(node, selectors["link"], "href")

        rating_match = RATING_REGEX.search(rating_text)
        rating = float(rating_match.group(0)) if rating_match else None
        reviews_digits = re.sub(r"\D", "", reviews_text)

        product = {
            "name": name,
            "price": extraction.price(price_text),
            "currency": detect_currency(price_text),
            "description": extraction.text(node, selectors["description"]),
            "category": extraction.text(node, selectors["category"]),
            "in_stock": not any(marker in stock_text.lower() for marker in ("out", "unavailable")),
            "rating": rating or None,
            "reviews": int(reviews_digits) if reviews_digits else 0,
            "image_url": extraction.absolute_url(image_url, base_url),
            "url": extraction.absolute_url(link_url, base_url) or base_url,
        }

        coverage.observe("name", name)
        coverage.observe("price", product["price"])
        coverage.observe("description", product["description"])
        coverage.observe("category", product["category"])
        coverage.observe("stock", stock_text)
        coverage.observe("rating", rating_text)
        coverage.observe("reviews", reviews_text)
        coverage.observe("image", image_url)
        coverage.observe("link", link_url)
        return product
