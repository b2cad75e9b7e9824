from __future__ import annotations

import math
import secrets
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

SVG_MEDIA_TYPE = "image/svg+xml"

Point = Tuple[float, float]
Stroke = List[Point]

# Glyphs on a 4x6 grid (y grows downwards). Look-alikes such as 0/O/Q,
# 1/I/L, 5/S, 8/B, 2/Z and 6/G are left out of the alphabet entirely.
GLYPHS: Dict[str, List[Stroke]] = {
    "A": [[(0, 6), (2, 0), (4, 6)], [(1, 3.5), (3, 3.5)]],
    "C": [[(4, 1), (3, 0), (1, 0), (0, 1), (0, 5), (1, 6), (3, 6), (4, 5)]],
    "E": [[(4, 0), (0, 0), (0, 6), (4, 6)], [(0, 3), (3, 3)]],
    "F": [[(4, 0), (0, 0), (0, 6)], [(0, 3), (3, 3)]],
    "H": [[(0, 0), (0, 6)], [(4, 0), (4, 6)], [(0, 3), (4, 3)]],
    "J": [[(1, 0), (4, 0)], [(3, 0), (3, 5), (2, 6), (1, 6), (0, 5)]],
    "K": [[(0, 0), (0, 6)], [(4, 0), (0, 3.5)], [(1.2, 2.8), (4, 6)]],
    "M": [[(0, 6), (0, 0), (2, 3), (4, 0), (4, 6)]],
    "N": [[(0, 6), (0, 0), (4, 6), (4, 0)]],
    "P": [[(0, 6), (0, 0), (3, 0), (4, 1), (4, 2), (3, 3), (0, 3)]],
    "R": [[(0, 6), (0, 0), (3, 0), (4, 1), (4, 2), (3, 3), (0, 3)], [(2, 3), (4, 6)]],
    "T": [[(0, 0), (4, 0)], [(2, 0), (2, 6)]],
    "U": [[(0, 0), (0, 5), (1, 6), (3, 6), (4, 5), (4, 0)]],
    "V": [[(0, 0), (2, 6), (4, 0)]],
    "W": [[(0, 0), (1, 6), (2, 2), (3, 6), (4, 0)]],
    "X": [[(0, 0), (4, 6)], [(4, 0), (0, 6)]],
    "Y": [[(0, 0), (2, 3), (4, 0)], [(2, 3), (2, 6)]],
    "2": [[(0, 1), (1, 0), (3, 0), (4, 1), (4, 2), (0, 6), (4, 6)]],
    "3": [[(0, 0), (4, 0), (2, 2.5), (3, 2.5), (4, 3.5), (4, 5), (3, 6), (1, 6), (0, 5)]],
    "4": [[(3, 6), (3, 0), (0, 4), (4, 4)]],
    "6": [[(3, 0), (1, 0), (0, 1), (0, 5), (1, 6), (3, 6), (4, 5), (4, 4), (3, 3), (0, 3)]],
    "7": [[(0, 0), (4, 0), (1.5, 6)]],
    "9": [[(4, 3), (1, 3), (0, 2), (0, 1), (1, 0), (3, 0), (4, 1), (4, 5), (3, 6), (1, 6)]],
}

ALPHABET = "".join(GLYPHS)


@dataclass(frozen=True)
class Challenge:
    image: bytes
    secret: str


class CaptchaService:
    """Issues distorted-text SVG challenges.

    Glyphs are emitted as stroked paths, never as <text>, so the answer
    cannot be lifted from the markup. Each glyph is scaled, rotated and
    jittered independently and the image is crossed by ``noise`` random
    bezier curves.
    """

    def __init__(
        self,
        size: int = 5,
        noise: int = 2,
        color: bool = True,
        background: str = "#f0f0f0",
        width: int = 150,
        height: int = 50,
        alphabet: str = ALPHABET,
    ) -> None:
        unknown = set(alphabet) - set(GLYPHS)
        if unknown:
            raise ValueError(f"No glyph defined for: {''.join(sorted(unknown))}")
        self.size = size
        self.noise = noise
        self.color = color
        self.background = background
        self.width = width
        self.height = height
        self.alphabet = alphabet
        self._random = secrets.SystemRandom()

    def issue(self) -> Challenge:
        secret = "".join(secrets.choice(self.alphabet) for _ in range(self.size))
        return Challenge(image=self.render(secret).encode("utf-8"), secret=secret)

    def render(self, text: str) -> str:
        paths = [self._noise_path() for _ in range(self.noise)]
        slot = self.width / (len(text) + 1)
        for index, char in enumerate(text):
            paths.append(self._glyph_path(char, slot * (index + 1)))

        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width}" '
            f'height="{self.height}" viewBox="0 0 {self.width} {self.height}">'
            f'<rect width="100%" height="100%" fill="{self.background}"/>'
            f"{''.join(paths)}</svg>"
        )

    def _glyph_path(self, char: str, center_x: float) -> str:
        rnd = self._random
        scale = self.height / 10 * rnd.uniform(0.85, 1.15)
        angle = math.radians(rnd.uniform(-25, 25))
        center_y = self.height / 2 + rnd.uniform(-4, 4)
        cos_a, sin_a = math.cos(angle), math.sin(angle)

        commands: List[str] = []
        for stroke in GLYPHS[char]:
            for position, (gx, gy) in enumerate(stroke):
                # grid centre is (2, 3)
                x = (gx - 2) * scale
                y = (gy - 3) * scale
                px = center_x + x * cos_a - y * sin_a + rnd.uniform(-0.6, 0.6)
                py = center_y + x * sin_a + y * cos_a + rnd.uniform(-0.6, 0.6)
                commands.append(f"{'M' if position == 0 else 'L'}{px:.2f} {py:.2f}")

        width = rnd.uniform(2.5, 3.5)
        return (
            f'<path d="{" ".join(commands)}" fill="none" stroke="{self._color()}" '
            f'stroke-width="{width:.2f}" stroke-linecap="round" stroke-linejoin="round"/>'
        )

    def _noise_path(self) -> str:
        rnd = self._random
        points: Sequence[Point] = (
            (rnd.uniform(1, 21), rnd.uniform(1, self.height - 1)),
            (rnd.uniform(self.width / 4, self.width / 2), rnd.uniform(1, self.height - 1)),
            (rnd.uniform(self.width / 2, self.width * 3 / 4), rnd.uniform(1, self.height - 1)),
            (rnd.uniform(self.width - 21, self.width - 1), rnd.uniform(1, self.height - 1)),
        )
        (x0, y0), (x1, y1), (x2, y2), (x3, y3) = points
        return (
            f'<path d="M{x0:.2f} {y0:.2f} C{x1:.2f} {y1:.2f},{x2:.2f} {y2:.2f},'
            f'{x3:.2f} {y3:.2f}" fill="none" stroke="{self._color()}" '
            f'stroke-width="{rnd.uniform(1, 2):.2f}"/>'
        )

    def _color(self) -> str:
        if not self.color:
            return "#444"
        rnd = self._random
        # dark, saturated hues stay readable on the light background
        return f"hsl({rnd.randint(0, 359)},{rnd.randint(55, 90)}%,{rnd.randint(25, 42)}%)"


def get_captcha_service() -> CaptchaService:
    return CaptchaService()
