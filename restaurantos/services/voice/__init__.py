"""
Voice Quick Order

Turns a speech transcript into a priced order:

    transcript → prompt → AI backend → JSON → fuzzy menu match → totals

Usage:
    from restaurantos.services.voice import VoiceOrderParser

    parser = VoiceOrderParser(get_ai_service())
    parsed = await parser.parse(transcript, menu_items, user_id)
"""

from restaurantos.services.voice.matcher import match_menu_item
from restaurantos.services.voice.order_parser import (
    ParsedItem,
    ParsedOrder,
    VoiceOrderError,
    VoiceOrderParser,
    build_order_prompt,
    extract_json_object,
    price_menu_lines,
    price_parsed_order,
)

__all__ = [
    "match_menu_item",
    "ParsedItem",
    "ParsedOrder",
    "VoiceOrderError",
    "VoiceOrderParser",
    "build_order_prompt",
    "extract_json_object",
    "price_menu_lines",
    "price_parsed_order",
]
