"""
Notification rendering.

Builds the embed sent for one feed entry from the entry itself, the
feed's color and the configured branding.
"""

from rss_relay.config import BrandingConfig
from rss_relay.rss_parser import FeedEntry
from rss_relay.sanitizer import MAX_DESCRIPTION_LENGTH, truncate
from rss_relay.webhook import (
    MAX_TITLE_LENGTH,
    Embed,
    EmbedAuthor,
    EmbedImage,
    EmbedThumbnail,
    WebhookMessage,
    hex_to_int,
)


def render_entry(
    entry: FeedEntry,
    color: str,
    description: str,
    image: str | None = None,
    branding: BrandingConfig | None = None,
) -> Embed:
    """
    Render one feed entry as an embed.

    Parameters
    ----------
    entry : FeedEntry
        Entry to render. It is not modified.
    color : str
        Feed color as a hex string.
    description : str
        Sanitized description of the entry.
    image : str | None
        First image found in the entry's HTML description.
    branding : BrandingConfig | None
        Default thumbnail and author block.

    Returns
    -------
    Embed
        The rendered embed.
    """
    branding = branding or BrandingConfig()

    embed = Embed(
        title=entry.title[:MAX_TITLE_LENGTH] or None,
        url=entry.link or None,
        description=truncate(description, MAX_DESCRIPTION_LENGTH) or None,
        color=hex_to_int(color),
        timestamp=entry.published,
    )

    if branding.thumbnail_url:
        embed.thumbnail = EmbedThumbnail(
            url=branding.thumbnail_url,
            width=branding.thumbnail_width,
            height=branding.thumbnail_height,
        )
    if branding.author_name:
        embed.author = EmbedAuthor(
            name=branding.author_name,
            url=branding.author_url,
            icon_url=branding.author_icon_url,
        )

    lead_image = entry.image or image
    if lead_image:
        embed.image = EmbedImage(url=lead_image)

    return embed


def render_message(embed: Embed, branding: BrandingConfig | None = None) -> WebhookMessage:
    """Wrap an embed in a webhook message carrying the branding identity."""
    branding = branding or BrandingConfig()
    message = WebhookMessage(
        username=branding.username,
        avatar_url=branding.avatar_url,
    )
    return message.add_embed(embed)
