from pydantic import BaseModel
from typing import List, Dict, Any


class ViolationModel(BaseModel):
    row: int
    col: int
    severity: str  # critical | high | medium | low
    kind: str


class MapResponse(BaseModel):
    tiles: List[List[int]]
    mapCode: str
    report: Dict[str, Any]


class ValidationResponse(BaseModel):
    violations: List[ViolationModel]
    counts: Dict[str, int]
    passed: bool
