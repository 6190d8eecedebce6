"""
Descuento de inventario para ventas por caja y por kg.

El kg solicitado se toma primero del peso suelto; si no alcanza se abren
cajas completas y el sobrante de esas cajas pasa a peso suelto. Las cajas
solicitadas se toman de las cajas que quedan sin abrir.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional
import math

from fastapi import HTTPException, status

from app.common.validators import as_decimal


def _fmt(value) -> str:
    value = as_decimal(value).normalize()
    return format(value, "f")


@dataclass
class StockDeduction:
    boxes_opened: int
    loose_kg_used: Decimal
    kg_from_unboxing: Decimal
    leftover_kg: Decimal
    new_boxes: int
    new_kg: Decimal
    details: List[str] = field(default_factory=list)

    @property
    def unboxing_info(self) -> Optional[dict]:
        if self.boxes_opened <= 0:
            return None
        return {
            "boxesUnboxed": self.boxes_opened,
            "kgFromUnboxing": self.kg_from_unboxing,
            "remainingKgFromUnboxing": self.leftover_kg,
        }


def calculate_stock_deduction(
    quantity_box: int,
    quantity_kg,
    box_to_kg_ratio,
    boxes_requested: int,
    kg_requested,
) -> StockDeduction:
    """
    Calcula el stock resultante de vender `boxes_requested` cajas y `kg_requested` kg.
    Lanza HTTPException 400 si el stock no alcanza.
    """
    ratio = as_decimal(box_to_kg_ratio)
    loose_kg = as_decimal(quantity_kg)
    kg_requested = as_decimal(kg_requested)

    available_kg = loose_kg + quantity_box * ratio
    needed_kg = boxes_requested * ratio + kg_requested
    if available_kg < needed_kg:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Insufficient stock: need {_fmt(needed_kg)}kg, have {_fmt(available_kg)}kg available"
        )

    details = []
    loose_used = Decimal("0")
    boxes_opened = 0
    kg_from_unboxing = Decimal("0")
    leftover = Decimal("0")

    if kg_requested > 0:
        if loose_kg >= kg_requested:
            loose_used = kg_requested
            details.append(f"Used {_fmt(kg_requested)}kg from loose stock")
        else:
            loose_used = loose_kg
            shortfall = kg_requested - loose_kg
            boxes_opened = math.ceil(shortfall / ratio)
            if boxes_opened > quantity_box:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Insufficient boxes: need {boxes_opened} box(es) to convert, have {quantity_box}"
                )
            if loose_kg > 0:
                details.append(f"Used {_fmt(loose_kg)}kg from loose stock")
            kg_from_unboxing = boxes_opened * ratio
            leftover = kg_from_unboxing - shortfall
            details.append(f"Unboxed {boxes_opened} box(es) to get {_fmt(kg_from_unboxing)}kg")
            details.append(f"Used {_fmt(shortfall)}kg from unboxed stock")
            if leftover > 0:
                details.append(f"{_fmt(leftover)}kg remaining from unboxing added to loose stock")

    remaining_boxes = quantity_box - boxes_opened
    if boxes_requested > 0:
        if boxes_requested > remaining_boxes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Insufficient boxes: need {boxes_requested} box(es), have {remaining_boxes} remaining"
            )
        details.append(f"Used {boxes_requested} box(es) from stock")

    new_kg = loose_kg - loose_used + leftover
    return StockDeduction(
        boxes_opened=boxes_opened,
        loose_kg_used=loose_used,
        kg_from_unboxing=kg_from_unboxing,
        leftover_kg=leftover,
        new_boxes=remaining_boxes - boxes_requested,
        new_kg=max(Decimal("0"), new_kg),
        details=details,
    )
