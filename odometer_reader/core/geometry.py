"""Geometry / math helper functions (pure, easily unit tested)."""
from __future__ import annotations

def iou_xyxy(a, b) -> float:
    xA = max(a[0], b[0]); yA = max(a[1], b[1])
    xB = min(a[2], b[2]); yB = min(a[3], b[3])
    inter_w = max(0, xB - xA)
    inter_h = max(0, yB - yA)
    inter = inter_w * inter_h
    area_a = max(0, a[2]-a[0]) * max(0, a[3]-a[1])
    area_b = max(0, b[2]-b[0]) * max(0, b[3]-b[1])
    denom = area_a + area_b - inter
    if denom <= 0: return 0.0
    return inter / denom

def cxcywh_to_xyxy(cx: float, cy: float, w: float, h: float):
    return (cx - w/2.0, cy - h/2.0, cx + w/2.0, cy + h/2.0)

def aspect_ratio(width: int, height: int) -> float:
    if height <= 0: return 0.0
    return float(width) / float(height)
