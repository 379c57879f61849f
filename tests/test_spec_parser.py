from core.models import ProductSpec
from worker.spec_parser import parse_specs


def test_macbook_air_listing_is_fully_parsed():
    spec = parse_specs(
        "Apple MacBook Air 13吋 M4晶片 8核心CPU 16GB統一記憶體",
        "16GB統一記憶體 256GB SSD",
        "Mac",
    )
    assert spec.product_type == "MacBook Air"
    assert spec.screen_size == "13吋"
    assert spec.chip == "M4"
    assert spec.memory == "16GB"
    assert spec.storage == "256GB"
    assert spec.color is None
    assert spec.category == "Mac"


def test_storefront_style_name_with_chip_variant_and_colour():
    name = "整修品 14 吋 MacBook Pro Apple M3 Pro 晶片，配備 11 核心 CPU 與 14 核心 GPU - 太空黑色"
    spec = parse_specs(name, name, "Mac")
    assert spec.product_type == "MacBook Pro"
    assert spec.screen_size == "14吋"
    assert spec.chip == "M3 Pro"
    assert spec.color == "太空黑色"
    assert spec.memory is None
    assert spec.storage is None


def test_non_breaking_spaces_are_normalized():
    spec = parse_specs("MacBook\u00a0Air 15\u00a0吋 Apple\u00a0M2", None, "Mac")
    assert spec.product_type == "MacBook Air"
    assert spec.screen_size == "15吋"
    assert spec.chip == "M2"


def test_decimal_screen_size_is_not_an_integer_size():
    spec = parse_specs("MacBook Pro 16.2 吋", "", "Mac")
    assert spec.screen_size is None


def test_chip_patterns_are_tried_on_name_then_description():
    # the "Apple <chip>" pattern in the description wins over the "<chip> 晶片" pattern in the name
    spec = parse_specs("Mac mini M2 晶片", "Apple M3 Max", "Mac")
    assert spec.chip == "M3 Max"


def test_bare_chip_token_must_not_follow_a_letter():
    assert parse_specs("iPad Air M2 Wi-Fi", "", "iPad").chip == "M2"
    assert parse_specs("Model XM1 adapter", "", "Other").chip is None


def test_memory_prefers_description_and_memory_suffix():
    spec = parse_specs("iMac 24 吋 8GB 記憶體", "24GB 統一記憶體 1TB SSD", "Mac")
    assert spec.memory == "24GB"
    assert spec.storage == "1TB"
    assert spec.product_type == "iMac"

    fallback = parse_specs("iMac 24 吋 8GB 記憶體", "", "Mac")
    assert fallback.memory == "8GB"


def test_storage_patterns():
    assert parse_specs("", "2.5TB", "Mac").storage == "2.5TB"
    assert parse_specs("", "512GB 儲存空間", "Mac").storage == "512GB"
    assert parse_specs("", "16GB 統一記憶體", "Mac").storage is None


def test_product_type_order_and_apple_tv():
    assert parse_specs("iPad mini Wi-Fi 64GB", "", "iPad").product_type == "iPad mini"
    assert parse_specs("iPad Wi-Fi 64GB", "", "iPad").product_type == "iPad"
    assert parse_specs("Apple TV 4K Wi-Fi 64GB", "", "AppleTV").product_type == "Apple TV"
    assert parse_specs("Mac Studio Apple M2 Ultra", "", "Mac").chip == "M2 Ultra"


def test_missing_text_yields_empty_spec_with_default_category():
    spec = parse_specs(None, None, None)
    assert spec == ProductSpec(category="Other")
    assert spec.as_dict()["category"] == "Other"
