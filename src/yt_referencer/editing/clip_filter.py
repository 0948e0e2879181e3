"""Dashboard filtering of clips by selected tags and a minimum rating."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from yt_referencer.models.clip import Clip
from yt_referencer.models.tag import MAX_RATING, MIN_RATING, ClipTag


@dataclass
class ClipFilter:
    """Selected tag ids plus a rating floor.

    With tags selected, a clip must carry every one of them rated at least
    ``min_rating``. With none selected, the floor alone applies: any tag on
    the clip must reach it, and a floor of 1 lets every clip through.
    """

    selected_tag_ids: list[str] = field(default_factory=list)
    min_rating: int = MIN_RATING

    def __post_init__(self) -> None:
        self.selected_tag_ids = list(self.selected_tag_ids)
        self.set_min_rating(self.min_rating)

    def toggle(self, tag_id: str) -> None:
        if tag_id in self.selected_tag_ids:
            self.selected_tag_ids.remove(tag_id)
        else:
            self.selected_tag_ids.append(tag_id)

    def set_min_rating(self, rating: int) -> None:
        self.min_rating = max(MIN_RATING, min(MAX_RATING, int(rating)))

    def clear(self) -> None:
        self.selected_tag_ids.clear()
        self.min_rating = MIN_RATING

    @property
    def is_active(self) -> bool:
        return bool(self.selected_tag_ids) or self.min_rating > MIN_RATING

    def matches(self, clip_tags: Sequence[ClipTag]) -> bool:
        if not self.is_active:
            return True
        ratings = {tag.id: tag.rating for tag in clip_tags}
        if not self.selected_tag_ids:
            return any(rating >= self.min_rating for rating in ratings.values())
        return all(ratings.get(tag_id, 0) >= self.min_rating for tag_id in self.selected_tag_ids)

    def apply(self, clips: Sequence[Clip], clip_tags: Mapping[str, Sequence[ClipTag]]) -> list[Clip]:
        """Keep the matching clips, preserving order. Untagged clips have no tags."""
        return [clip for clip in clips if self.matches(clip_tags.get(clip.id, ()))]
