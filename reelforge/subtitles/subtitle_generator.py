"""
Subtitle file generation for ReelForge segments.

A segment may carry subtitle text, per-word timing hints, or both. The
generator writes one SRT file per segment into the job workspace and, when
word timings are present, reports the total spoken duration so the pipeline
can override the segment's duration before validation.

Accepted word timing shapes:
    [0.4, 0.3, 0.5]                                  seconds per word
    [{"word": "Hi", "duration": 0.4}, ...]           per-word durations
    [{"word": "Hi", "start": 0.0, "end": 0.4}, ...]  absolute offsets
    0.35                                             same duration for every word
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pysrt

from reelforge import settings
from reelforge.core.models import DownloadedSegment

logger = logging.getLogger(__name__)

DEFAULT_PRESET = "default"


@dataclass
class SubtitleResult:
    srt_path: Optional[Path] = None
    calculated_duration: Optional[float] = None
    subtitle_style: Optional[str] = None


@dataclass
class TimedWord:
    text: str
    start: float
    end: float


def get_subtitle_style_presets() -> Dict[str, str]:
    """Named subtitle styles (lowercase name -> ASS force_style string)."""
    return settings.get_subtitle_presets()


def resolve_subtitle_style(preset: Optional[str] = None, style: Optional[str] = None) -> Optional[str]:
    """
    Pick the job-wide subtitle style.

    A preset name wins over a raw style string. Unknown preset names fall back
    to the ``default`` preset.
    """
    if preset:
        presets = get_subtitle_style_presets()
        resolved = presets.get(preset.lower())
        if resolved is None:
            logger.warning(f"Unknown subtitle preset '{preset}', using '{DEFAULT_PRESET}'")
            resolved = presets.get(DEFAULT_PRESET)
        logger.info(f"Using subtitle preset: {preset}")
        return resolved
    if style:
        logger.info(f"Using custom subtitle style: {style}")
        return style
    return None


def _positive_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def parse_word_timings(word_duration: Any, text: Optional[str]) -> List[TimedWord]:
    """
    Turn word timing hints into absolute per-word intervals.

    Words missing from the hints are taken from ``text`` by position. Entries
    that cannot be interpreted are skipped.
    """
    text_words = (text or "").split()

    if isinstance(word_duration, (int, float)) and not isinstance(word_duration, bool):
        per_word = _positive_number(word_duration)
        if not per_word or not text_words:
            return []
        word_duration = [per_word] * len(text_words)

    if not isinstance(word_duration, list):
        return []

    words: List[TimedWord] = []
    cursor = 0.0
    for i, entry in enumerate(word_duration):
        fallback_word = text_words[i] if i < len(text_words) else ""

        if isinstance(entry, dict):
            word = str(entry.get("word") or entry.get("text") or fallback_word)
            start = _positive_number(entry.get("start"))
            end = _positive_number(entry.get("end"))
            if start is not None and end is not None and end >= start:
                words.append(TimedWord(word, start, end))
                cursor = end
                continue
            seconds = _positive_number(entry.get("duration"))
        else:
            word = fallback_word
            seconds = _positive_number(entry)

        if seconds is None:
            logger.debug(f"Skipping uninterpretable word timing at position {i}: {entry!r}")
            continue
        words.append(TimedWord(word, cursor, cursor + seconds))
        cursor += seconds

    return words


def group_cues(words: List[TimedWord], words_per_cue: int) -> List[Tuple[float, float, str]]:
    """Group timed words into (start, end, text) cues of at most ``words_per_cue`` words."""
    cues = []
    for offset in range(0, len(words), words_per_cue):
        chunk = words[offset:offset + words_per_cue]
        text = " ".join(w.text for w in chunk if w.text).strip()
        if not text:
            continue
        cues.append((chunk[0].start, chunk[-1].end, text))
    return cues


def _to_subrip_time(seconds: float) -> pysrt.SubRipTime:
    return pysrt.SubRipTime.from_ordinal(int(round(seconds * 1000)))


class SubtitleGenerator(ABC):
    """Contract for per-segment subtitle generation."""

    @abstractmethod
    def generate(
        self,
        segment: DownloadedSegment,
        work_dir: Path,
        index: int,
        fallback_duration: Any,
        style: Optional[str] = None,
    ) -> SubtitleResult:
        """
        Create the subtitle file for one segment.

        Args:
            segment: Segment carrying subtitle_text and/or word_duration
            work_dir: Job workspace
            index: Segment position, used in the file name
            fallback_duration: Segment duration used when no word timings exist
            style: Job-wide subtitle style, echoed back in the result
        """


class SrtSubtitleGenerator(SubtitleGenerator):
    """Writes SRT files with pysrt."""

    def __init__(self, words_per_cue: Optional[int] = None):
        self.words_per_cue = words_per_cue or settings.get_subtitle_words_per_cue()

    def generate(
        self,
        segment: DownloadedSegment,
        work_dir: Path,
        index: int,
        fallback_duration: Any,
        style: Optional[str] = None,
    ) -> SubtitleResult:
        timed_words = parse_word_timings(segment.word_duration, segment.subtitle_text)
        calculated_duration: Optional[float] = None

        if timed_words:
            cues = group_cues(timed_words, self.words_per_cue)
            total = max(w.end for w in timed_words)
            calculated_duration = round(total, 3) if total > 0 else None
        else:
            text = (segment.subtitle_text or "").strip()
            span = _positive_number(fallback_duration)
            if not text or not span:
                logger.warning(f"Segment {index}: subtitle data present but no usable text/duration; skipping")
                return SubtitleResult(subtitle_style=style)
            cues = [(0.0, span, text)]

        if not cues:
            return SubtitleResult(calculated_duration=calculated_duration, subtitle_style=style)

        subs = pysrt.SubRipFile()
        for number, (start, end, text) in enumerate(cues, start=1):
            subs.append(pysrt.SubRipItem(
                index=number,
                start=_to_subrip_time(start),
                end=_to_subrip_time(end),
                text=text,
            ))

        srt_path = Path(work_dir) / f"sub_{index}.srt"
        srt_path.parent.mkdir(parents=True, exist_ok=True)
        subs.save(str(srt_path), encoding="utf-8")
        logger.debug(f"Wrote {len(cues)} subtitle cues for segment {index}: {srt_path.name}")

        return SubtitleResult(
            srt_path=srt_path,
            calculated_duration=calculated_duration,
            subtitle_style=style,
        )
