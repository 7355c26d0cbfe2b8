"""
Asset Normalizer

Derives an upload-safe file name and MIME type for a picked media file.
Mobile cameras record QuickTime containers that the backend's extension
allow-list and some players reject, so videos are always sent as .mp4.
"""

import time
from typing import Optional, Union

from data.models import AssetKind, MediaAsset, NormalizedAsset

QUICKTIME_MARKERS = ("quicktime", "mov")


def resolve_mime_type(asset: MediaAsset) -> Optional[str]:
    """Return the explicit MIME type, falling back to the secondary type field."""
    return asset.mime_type or asset.type or None


def _base_name(name: str) -> str:
    if '.' in name.lstrip('.'):
        return name.rsplit('.', 1)[0]
    return name


def normalize(asset: MediaAsset, kind: Union[AssetKind, str], now_ms: Optional[int] = None) -> NormalizedAsset:
    """
    Normalize a media asset before upload.

    Args:
        asset: The picked file.
        kind: What the file is used as (image, video, document, audio).
        now_ms: Epoch milliseconds used to name unnamed files; defaults to the current time.

    Returns:
        NormalizedAsset: The asset with its upload name and MIME type.
    """
    kind = AssetKind(kind)
    mime_type = resolve_mime_type(asset)
    lowered = (mime_type or "").lower()

    name = asset.name
    if not name:
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        name = f"file_{now_ms}"

    if kind is AssetKind.VIDEO:
        name = f"{_base_name(name)}.mp4"
        if not mime_type or any(marker in lowered for marker in QUICKTIME_MARKERS):
            mime_type = "video/mp4"
    elif kind is AssetKind.IMAGE:
        if "png" in lowered:
            name = f"{_base_name(name)}.png"
        else:
            name = f"{_base_name(name)}.jpg"
            if not mime_type:
                mime_type = "image/jpeg"

    return NormalizedAsset(uri=asset.uri, name=name, mime_type=mime_type, size=asset.size)
