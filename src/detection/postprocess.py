"""
Post-processing of raw candidates: confidence filter and greedy NMS.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from models.detection import BoundingBox, Detection, RawCandidate


def calculate_iou(box_a: BoundingBox, box_b: BoundingBox) -> float:
    """
    Intersection over Union of two axis-aligned boxes.

    Returns 0.0 when the boxes do not overlap (intersection width or height
    <= 0) and 1.0 for identical boxes with positive area.
    """
    x_left = max(box_a.x, box_b.x)
    y_top = max(box_a.y, box_b.y)
    x_right = min(box_a.x2, box_b.x2)
    y_bottom = min(box_a.y2, box_b.y2)

    if x_right <= x_left or y_bottom <= y_top:
        return 0.0

    intersection = (x_right - x_left) * (y_bottom - y_top)
    union = box_a.area + box_b.area - intersection
    if union <= 0:
        return 0.0
    return intersection / union


def filter_by_confidence(
    candidates: Iterable[RawCandidate],
    confidence_threshold: float,
) -> List[RawCandidate]:
    return [c for c in candidates if c.confidence >= confidence_threshold]


def non_max_suppression(
    candidates: Sequence[RawCandidate],
    nms_threshold: float,
    max_detections: int,
) -> List[RawCandidate]:
    """
    Greedy NMS over candidates.

    Candidates are visited by descending confidence (stable, so ties keep
    input order). A candidate is kept only if its IoU with every kept box is
    <= nms_threshold. The walk stops as soon as max_detections are kept.
    """
    if max_detections <= 0:
        return []

    ordered = sorted(candidates, key=lambda c: c.confidence, reverse=True)
    kept: List[RawCandidate] = []
    for candidate in ordered:
        if all(calculate_iou(candidate.bbox, k.bbox) <= nms_threshold for k in kept):
            kept.append(candidate)
            if len(kept) >= max_detections:
                break
    return kept


def process(
    candidates: Iterable[RawCandidate],
    confidence_threshold: float,
    nms_threshold: float,
    max_detections: int,
) -> List[Detection]:
    """
    Reduce raw candidates to the final detection set.

    Every returned detection has confidence >= confidence_threshold, no two
    overlap with IoU > nms_threshold, and at most max_detections are returned.
    """
    confident = filter_by_confidence(candidates, confidence_threshold)
    kept = non_max_suppression(confident, nms_threshold, max_detections)
    return [Detection.from_candidate(c) for c in kept]
