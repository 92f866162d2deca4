# app/services/map_code.py
from typing import List, Optional

from mapgen.grid import EMPTY, GRASS, OUT_OF_GAME, WALL, WATER

TILE_CHARS = {EMPTY: ".", WALL: "w", WATER: "a", GRASS: "b", OUT_OF_GAME: "x"}
CHAR_TILES = {ch: int(tile) for tile, ch in TILE_CHARS.items()}
FENCE = "```"


class MapCodeError(ValueError):
    pass


def tiles_to_map_code(tiles: List[List[int]]) -> str:
    """One line per row, one character per tile."""
    lines = []
    for r, row in enumerate(tiles):
        try:
            lines.append("".join(TILE_CHARS[tile] for tile in row))
        except KeyError as e:
            raise MapCodeError(f"Unknown tile code {e.args[0]} in row {r + 1}.") from e
    return "\n".join(lines)


def _strip_fences(code: str) -> str:
    cleaned = code.strip()
    if cleaned.startswith(FENCE):
        # drop the opening fence line (with any language tag) and the closing fence
        first_break = cleaned.find("\n")
        cleaned = cleaned[first_break + 1:] if first_break != -1 else cleaned[len(FENCE):]
        if cleaned.rstrip().endswith(FENCE):
            cleaned = cleaned.rstrip()[:-len(FENCE)]
    return cleaned.strip()


def map_code_to_tiles(code: str, rows: Optional[int] = None, cols: Optional[int] = None) -> List[List[int]]:
    """
    Parses a map code back into tile codes. When `rows`/`cols` are given the code
    must match them exactly; otherwise the first row sets the width.
    """
    cleaned = _strip_fences(code or "")
    if not cleaned:
        raise MapCodeError("Map code is empty.")
    lines = [line.strip() for line in cleaned.split("\n")]

    if rows is not None and len(lines) != rows:
        raise MapCodeError(f"Expected {rows} rows, got {len(lines)}.")
    width = cols if cols is not None else len(lines[0])

    tiles = []
    for r, line in enumerate(lines):
        if len(line) != width:
            raise MapCodeError(f"Row {r + 1} has {len(line)} characters, expected {width}.")
        row = []
        for c, ch in enumerate(line):
            if ch not in CHAR_TILES:
                raise MapCodeError(f'Invalid character "{ch}" at row {r + 1}, col {c + 1}.')
            row.append(CHAR_TILES[ch])
        tiles.append(row)
    return tiles
