"""
style.py — visual style system for the bot.

Design language:
  • Structured cards with consistent emoji icons
  • Unicode box-drawing dividers
  • MarkdownV2 throughout

All text that goes into Telegram messages should be formatted through this module.
"""
from __future__ import annotations

from search_backends.base import VideoSuggestion, is_embed_url, normalize_embed_url

# ── Escape ────────────────────────────────────────────────────────────────────

def esc(text: str) -> str:
    """Escape all MarkdownV2 special characters."""
    for ch in r"\_*[]()~`>#+-=|{}.!":
        text = text.replace(ch, f"\\{ch}")
    return text


def esc_url(url: str) -> str:
    """Escape a URL for use inside a MarkdownV2 inline link (only ) and \\ matter)."""
    return url.replace("\\", "\\\\").replace(")", "\\)")


# ── Visual constants ──────────────────────────────────────────────────────────

DIV   = "━━━━━━━━━━━━━━━━━━━━━━━━━━"    # thick divider
SDIV  = "┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄"    # subtle divider

MESSAGE_LIMIT = 4050   # Telegram caps messages at 4096 chars


# ══════════════════════════════════════════════════════════════════════════════
# START / WELCOME
# ══════════════════════════════════════════════════════════════════════════════

def welcome() -> str:
    return (
        f"♻️ *UPCYCLE FINDER*\n"
        f"{DIV}\n\n"
        f"Send a photo of a waste item and I'll identify it with AI\n"
        f"and find upcycling project videos for it\\.\n\n"
        f"✨  *What I can do*\n"
        f"▸ Recognise bottles, jars, cans, cardboard and more\n"
        f"▸ Find the latest upcycling tutorials on YouTube\n"
        f"▸ Take the photo with the station camera\n\n"
        f"{DIV}\n"
        f"_📸 Just send a photo to get started_"
    )


def help_text() -> str:
    return (
        f"📖 *HOW TO USE*\n"
        f"{DIV}\n\n"
        f"*1️⃣  Send a photo*\n"
        f"_Or an image file, or use /camera then /snap_\n\n"
        f"*2️⃣  AI identifies the item*\n"
        f"_e\\.g\\. glass jar, plastic bottle_\n\n"
        f"*3️⃣  Browse project ideas*\n"
        f"_Tap a card link to watch the tutorial_\n\n"
        f"{DIV}\n"
        f"💡  *Tips for best results*\n"
        f"▸ One item per photo\n"
        f"▸ Good lighting, plain background\n"
        f"▸ Avoid extreme angles or blur\n\n"
        f"{DIV}\n"
        f"_Commands: /start · /help · /camera · /snap · /cancel_"
    )


# ══════════════════════════════════════════════════════════════════════════════
# LOADING / CAMERA STATES
# ══════════════════════════════════════════════════════════════════════════════

def loading_analysis() -> str:
    return (
        f"🔍 *Analyzing your photo*\n"
        f"{SDIV}\n"
        f"⠋ Identifying the item and finding project ideas…"
    )


def camera_live() -> str:
    return (
        f"📷 *Camera is live*\n"
        f"{SDIV}\n"
        f"Point it at the item, then:\n"
        f"▸ /snap to take the photo\n"
        f"▸ /cancel to close the camera"
    )


def camera_closed() -> str:
    return "📷 Camera closed\\."


def camera_not_open() -> str:
    return "📷 The camera isn't open\\. Use /camera first\\."


# ══════════════════════════════════════════════════════════════════════════════
# RESULT CARDS
# ══════════════════════════════════════════════════════════════════════════════

def video_card(video: VideoSuggestion, index: int) -> str:
    """Format a single video suggestion as a card."""
    link  = normalize_embed_url(video.embed_url) or ""
    label = "▶️ Watch" if is_embed_url(link) else "🔗 Open"
    link_line = f"[{label}]({esc_url(link)})" if link else "_No link available_"
    return (
        f"*{index}\\.*  *{esc(video.title[:100])}*\n"
        f"📺 _by {esc(video.channel or 'unknown channel')}_\n"
        f"{esc(video.description)}\n"
        f"{link_line}"
    )


def results_page(result) -> str:
    """
    Header with the identified item, then one card per video.
    Cards that would push the message past MESSAGE_LIMIT are dropped whole, so
    no escape or entity is ever cut in half.
    """
    header = (
        f"♻️ *Project Ideas for:* {esc(result.item_name)}\n"
        f"{DIV}\n"
    )
    cards = [video_card(v, i) for i, v in enumerate(result.video_suggestions, 1)]
    sep   = f"\n\n{SDIV}\n\n"

    shown = len(cards)
    while True:
        page = header + sep.join(cards[:shown]) + _results_footer(shown, len(cards))
        if len(page) <= MESSAGE_LIMIT or shown == 0:
            return page
        shown -= 1


def _results_footer(shown: int, total: int) -> str:
    if shown == total:
        return f"\n{SDIV}\n_🎬 {total} videos · newest first_"
    return f"\n{SDIV}\n_🎬 {shown} of {total} videos shown · newest first_"


# ══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGES
# ══════════════════════════════════════════════════════════════════════════════

def error_banner(message: str) -> str:
    return (
        f"❌ *Error:* {esc(message)}\n"
        f"{SDIV}\n"
        f"_Send another photo to try again\\._"
    )


def superseded() -> str:
    return "⏭ _Skipped, a newer photo is being analyzed\\._"


def select_image_first() -> str:
    return esc("Please select an image first.")


def not_a_photo() -> str:
    return (
        f"📸 *Send a Photo*\n"
        f"{SDIV}\n"
        f"I need a photo of a waste item to find project ideas\\.\n"
        f"_Just take a pic and send it here\\!_"
    )


def error_rate_limited(max_requests: int, window_secs: int) -> str:
    return (
        f"⏱ *Slow Down\\!*\n"
        f"{SDIV}\n"
        f"You can analyze up to *{max_requests} photos* every *{window_secs} seconds*\\.\n\n"
        f"_Please wait a moment before sending another photo\\._"
    )
