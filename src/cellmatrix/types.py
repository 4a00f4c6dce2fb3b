from __future__ import annotations

from typing import Literal

HorizontalAlignType = Literal["left", "center", "right"]
SelectionPhase = Literal["idle", "selecting", "frozen"]
AggregateName = Literal["SUM", "AVERAGE"]
