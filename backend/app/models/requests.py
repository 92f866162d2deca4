# app/models/requests.py
from pydantic import BaseModel, Field
from typing import List, Optional, Literal


class GenerateMapRequest(BaseModel):
    mapSize: Literal["3v3", "showdown"] = "3v3"
    rows: Optional[int] = None
    cols: Optional[int] = None
    wallDensity: float = 10
    waterDensity: float = 5
    grassDensity: float = 10
    mirrorVertical: bool = False
    mirrorHorizontal: bool = False
    mirrorDiagonal: bool = False
    seed: Optional[int] = None
    usePatterns: Optional[bool] = None


class ValidateGridRequest(BaseModel):
    mapCode: Optional[str] = None
    tiles: Optional[List[List[int]]] = Field(default=None, description="2D list of tile codes")
