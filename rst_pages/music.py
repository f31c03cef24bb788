"""Render ``musicscore`` directive bodies written in ABC notation.

Only the ABC subset needed for short examples is understood: the header
fields ``X T C M L K``, ``V:`` voices, notes with accidentals and octave
marks, rests, and bar lines. Each voice gets its own treble staff.

Example
-------
>>> score = parse_abc("X:1\\nT:Scale\\nK:C\\nC D E F | G A B c")
>>> score.title, score.key, len(tokenize_notes(score.notes))
('Scale', 'C', 9)
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re
import uuid
from html import escape

from .errors import MusicScoreError

FIELD_PATTERN = re.compile(r"^(?P<field>[A-Za-z]):\s*(?P<value>.*)$")
NOTE_PATTERN = re.compile(
    r"(?P<bar>\|\||\|:|:\||\|)"
    r"|(?P<rest>z)(?P<rest_length>\d*/?\d*)"
    r"|(?P<accidental>\^{1,2}|_{1,2}|=)?(?P<pitch>[A-Ga-g])(?P<octave>[',]*)(?P<length>\d*/?\d*)"
)
PITCH_ORDER = "CDEFGAB"
HEADER_FIELDS = {
    "X": "index",
    "T": "title",
    "C": "composer",
    "M": "meter",
    "L": "default_length",
    "K": "key",
}

STAFF_LEFT = 50.0
STAFF_TOP = 90.0
STAFF_GAP = 100.0
LINE_SPACING = 10.0
NOTES_START = 140.0
NOTE_SPACING = 25.0
MIN_WIDTH = 800.0
MAX_WIDTH = 1200.0
TITLE_OFFSET = 40.0
TREBLE_CLEF = "&#119070;"


@dc.dataclass(slots=True)
class AbcVoice:
    name: str
    notes: str = ""


@dc.dataclass(slots=True)
class AbcScore:
    """Header fields and note text of one ABC tune."""

    index: str | None = None
    title: str | None = None
    composer: str | None = None
    meter: str | None = None
    default_length: str | None = None
    key: str | None = None
    notes: str = ""
    voices: list[AbcVoice] = dc.field(default_factory=list)

    def staves(self) -> list[tuple[str | None, str]]:
        """Return ``(voice name, notes)`` per staff, the unnamed one first."""
        staves: list[tuple[str | None, str]] = []
        if self.notes or not self.voices:
            staves.append((None, self.notes))
        staves.extend((voice.name, voice.notes) for voice in self.voices)
        return staves


@dc.dataclass(frozen=True, slots=True)
class NoteToken:
    """A parsed note, rest, or bar line."""

    kind: str
    pitch: str = ""
    octave: int = 0
    accidental: str = ""

    @property
    def staff_step(self) -> int:
        """Diatonic steps above the bottom staff line (E4)."""
        return self.octave * 7 + PITCH_ORDER.index(self.pitch) - (4 * 7 + 2)


def _join(existing: str, line: str) -> str:
    return f"{existing} {line}" if existing else line


def parse_abc(body: str) -> AbcScore:
    """Parse ABC header fields, voices, and note lines."""
    score = AbcScore()
    voice: AbcVoice | None = None
    for raw in body.splitlines():
        line = raw.strip()
        if not line or line.startswith("%"):
            continue
        field = FIELD_PATTERN.match(line)
        if field is not None and field.group("field") == "V":
            voice = AbcVoice(name=field.group("value").strip())
            score.voices.append(voice)
            continue
        if field is not None and field.group("field") in HEADER_FIELDS:
            setattr(score, HEADER_FIELDS[field.group("field")], field.group("value").strip())
            continue
        if field is not None:
            continue
        if voice is not None:
            voice.notes = _join(voice.notes, line)
        else:
            score.notes = _join(score.notes, line)
    return score


def parse_score(notation: str, body: str) -> AbcScore:
    """Parse ``body`` written in ``notation``.

    Raises
    ------
    MusicScoreError
        If the notation is not ABC.
    """
    if notation.strip().lower() != "abc":
        msg = f"Unsupported music score type: {notation.strip() or '(none)'}"
        raise MusicScoreError(msg)
    return parse_abc(body)


def tokenize_notes(notes: str) -> list[NoteToken]:
    tokens: list[NoteToken] = []
    for match in NOTE_PATTERN.finditer(notes):
        if match.group("bar"):
            tokens.append(NoteToken(kind="bar"))
        elif match.group("rest"):
            tokens.append(NoteToken(kind="rest"))
        else:
            letter = match.group("pitch")
            octave = 4 if letter.isupper() else 5
            marks = match.group("octave")
            octave += marks.count("'") - marks.count(",")
            tokens.append(
                NoteToken(
                    kind="note",
                    pitch=letter.upper(),
                    octave=octave,
                    accidental=match.group("accidental") or "",
                )
            )
    return tokens


def _staff(y: float, width: float) -> list[str]:
    return [
        f'<line x1="{STAFF_LEFT:g}" y1="{y + i * LINE_SPACING:g}" '
        f'x2="{STAFF_LEFT + width:g}" y2="{y + i * LINE_SPACING:g}" '
        'stroke="black" stroke-width="1"/>'
        for i in range(5)
    ]


def _notes(tokens: cabc.Sequence[NoteToken], y: float, spacing: float) -> list[str]:
    parts: list[str] = []
    bottom = y + 4 * LINE_SPACING
    x = NOTES_START
    for token in tokens:
        match token.kind:
            case "bar":
                parts.append(
                    f'<line x1="{x:g}" y1="{y:g}" x2="{x:g}" y2="{bottom:g}" '
                    'stroke="black" stroke-width="2"/>'
                )
                x += spacing * 0.6
                continue
            case "rest":
                parts.append(
                    f'<rect x="{x - 5:g}" y="{y + 15:g}" width="10" height="5" fill="black"/>'
                )
            case _:
                note_y = bottom - token.staff_step * LINE_SPACING / 2
                if token.accidental:
                    symbol = {"^": "&#9839;", "_": "&#9837;", "=": "&#9838;"}[token.accidental[0]]
                    parts.append(
                        f'<text x="{x - 14:g}" y="{note_y + 4:g}" font-size="14" '
                        f'font-family="serif">{symbol}</text>'
                    )
                parts.append(
                    f'<ellipse cx="{x:g}" cy="{note_y:g}" rx="6" ry="5" fill="black" '
                    f'transform="rotate(-20 {x:g} {note_y:g})"/>'
                )
                parts.append(
                    f'<line x1="{x + 5:g}" y1="{note_y:g}" x2="{x + 5:g}" '
                    f'y2="{note_y - 25:g}" stroke="black" stroke-width="1.5"/>'
                )
        x += spacing
    return parts


def render_score_svg(score: AbcScore, *, title: str | None = None) -> str:
    """Return an ``<svg>`` staff drawing of ``score``."""
    staves = [(name, tokenize_notes(notes)) for name, notes in score.staves()]
    longest = max((len(tokens) for _, tokens in staves), default=0)
    width = min(MAX_WIDTH, max(MIN_WIDTH, NOTES_START + longest * NOTE_SPACING + 50))
    spacing = min(NOTE_SPACING, (width - NOTES_START - 50) / max(longest, 1))
    display_title = title or score.title
    offset = TITLE_OFFSET if display_title else 0.0
    height = STAFF_TOP + offset + len(staves) * STAFF_GAP + 20

    parts = [f'<rect x="0" y="0" width="{width:g}" height="{height:g}" fill="white"/>']
    if display_title:
        parts.append(
            f'<text x="{width / 2:g}" y="30" text-anchor="middle" font-size="20" '
            f'font-weight="bold" font-family="sans-serif">{escape(display_title)}</text>'
        )
    if score.composer:
        parts.append(
            f'<text x="{width - 50:g}" y="{30 + offset:g}" text-anchor="end" font-size="12" '
            f'font-style="italic" font-family="sans-serif">{escape(score.composer)}</text>'
        )
    for index, (name, tokens) in enumerate(staves):
        y = STAFF_TOP + offset + index * STAFF_GAP
        parts.extend(_staff(y, width - 2 * STAFF_LEFT))
        parts.append(
            f'<text x="{STAFF_LEFT + 5:g}" y="{y + 32:g}" font-size="36" '
            f'font-family="serif">{TREBLE_CLEF}</text>'
        )
        if name:
            parts.append(
                f'<text x="{STAFF_LEFT:g}" y="{y - 10:g}" font-size="12" font-weight="bold" '
                f'font-family="sans-serif">{escape(name)}</text>'
            )
        if index == 0:
            if score.meter:
                parts.append(
                    f'<text x="100" y="{y + 24:g}" text-anchor="middle" font-size="14" '
                    f'font-family="serif">{escape(score.meter)}</text>'
                )
            if score.key:
                parts.append(
                    f'<text x="120" y="{y - 10:g}" text-anchor="middle" font-size="12" '
                    f'font-family="serif">K: {escape(score.key)}</text>'
                )
        parts.extend(_notes(tokens, y, spacing))
    body = "\n".join(parts)
    return (
        f'<svg viewBox="0 0 {width:g} {height:g}" xmlns="http://www.w3.org/2000/svg" '
        f'class="music-score-svg">\n{body}\n</svg>'
    )


class MusicScoreRenderer:
    """Render ``musicscore`` directives into downloadable SVG containers."""

    def __init__(
        self, *, id_factory: cabc.Callable[[], str] = lambda: f"score-{uuid.uuid4().hex[:8]}"
    ) -> None:
        self._id_factory = id_factory

    def render(self, notation: str, body: str, *, title: str | None = None) -> str:
        score = parse_score(notation, body)
        score_id = self._id_factory()
        return (
            f'<div class="music-score-container" data-score-id="{score_id}" '
            'data-score-type="abc">\n'
            f'<button class="music-score-download" type="button" data-score-id="{score_id}" '
            'data-score-type="abc" aria-label="Download music score as SVG">Download</button>\n'
            f"{render_score_svg(score, title=title)}\n"
            "</div>"
        )


__all__ = [
    "AbcScore",
    "AbcVoice",
    "MusicScoreRenderer",
    "NoteToken",
    "parse_abc",
    "parse_score",
    "render_score_svg",
    "tokenize_notes",
]
