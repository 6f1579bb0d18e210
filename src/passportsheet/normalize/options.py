from __future__ import annotations

from enum import Enum


class BackgroundColor(Enum):
    WHITE = "#ffffff"
    BLUE = "#4b9cd3"  # standard passport blue

    @property
    def label(self) -> str:
        return "pure white" if self is BackgroundColor.WHITE else "light blue"

    @property
    def rgb(self) -> tuple[int, int, int]:
        h = self.value.lstrip("#")
        return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))


class ClothingOption(Enum):
    NONE = "Original Outfit"
    MALE_BLAZER = "Black Suit (Male)"
    FEMALE_BLAZER = "Black Blazer (Female)"
    MALE_SHIRT = "White Shirt (Male)"
    FEMALE_SHIRT = "Formal Shirt (Female)"

    @property
    def outfit(self) -> str | None:
        return _OUTFITS.get(self)

    @staticmethod
    def parse(name: str) -> "ClothingOption":
        """Accepts enum names in any case, with '-' or '_' (e.g. "male-blazer")."""
        key = name.strip().upper().replace("-", "_")
        try:
            return ClothingOption[key]
        except KeyError:
            raise ValueError(f"Unknown clothing option: {name}") from None


_OUTFITS = {
    ClothingOption.MALE_BLAZER: "a professional black suit jacket with a white dress shirt and tie",
    ClothingOption.FEMALE_BLAZER: "a professional black formal blazer over a simple top",
    ClothingOption.MALE_SHIRT: "a crisp white formal button-down dress shirt",
    ClothingOption.FEMALE_SHIRT: "a professional white formal business shirt",
}
