from typing import Optional, Tuple
from src.utils.pagination import SortEnum


def toggle_sort(current_column: str, current_order: SortEnum, clicked_column: Optional[str]) -> Tuple[str, SortEnum]:
    """Column-header sorting: the same column flips, a new column starts descending."""
    if clicked_column is None:
        return current_column, current_order

    if clicked_column == current_column:
        flipped = SortEnum.ASCENDING if current_order == SortEnum.DESCENDING else SortEnum.DESCENDING
        return current_column, flipped

    return clicked_column, SortEnum.DESCENDING
