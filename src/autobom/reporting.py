import pandas as pd

from .models import BOMResult
from .presenter import category_breakdown, total_cost


def items_frame(result: BOMResult) -> pd.DataFrame:
    return pd.DataFrame(
        [item.to_dict() for item in result.items],
        columns=["category", "item", "description", "unit", "quantity", "rate", "amount"],
    )


def make_summary_text(result: BOMResult, top_n: int = 5) -> str:
    items_df = items_frame(result)
    total = total_cost(result.items)
    currency = result.currency
    lines = [f"Estimated total cost: {currency} {total:,.2f} across {len(items_df)} line item(s)."]
    if not items_df.empty:
        top = items_df.sort_values("amount", ascending=False).head(top_n)[
            ["category", "item", "quantity", "unit", "rate", "amount"]
        ].round({"rate": 2, "amount": 2})
        lines.append(f"Top cost drivers:\n{top.to_string(index=False)}")
        breakdown = "\n".join(f"  {label}: {currency} {amount:,.2f}" for label, amount in category_breakdown(result.items))
        lines.append(f"Cost by category:\n{breakdown}")
    if result.anomalies:
        lines.append("Response anomalies:\n" + "\n".join(f"  - {note}" for note in result.anomalies))
    return "\n".join(lines) + "\n"
