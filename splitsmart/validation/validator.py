"""
Receipt Consistency Check

DESIGN DECISION: The check is ADVISORY.
The recognizer may misread a line, and restaurants print odd receipts
(discount lines, service charges folded into the total). None of that
should stop a table from splitting the bill.

So the validator:
- Reports issues for the user to look at
- NEVER alters the receipt
- NEVER blocks the split

Checks:
- Empty receipt
- Negative line prices
- Items that don't add up to the subtotal
- Subtotal + tax + tip that doesn't add up to the total
"""

from splitsmart.config import get_settings
from splitsmart.models.receipt import (
    Receipt,
    ValidationIssue,
    ValidationResult,
)


# Recognized amounts are printed in cents
DEFAULT_TOLERANCE = 0.01


class ReceiptValidator:
    """
    Checks a normalized receipt for numbers that don't add up.
    """

    def __init__(self, tolerance: float = DEFAULT_TOLERANCE):
        self._tolerance = tolerance
        self._currency = get_settings().app.currency_symbol

    def _money(self, amount: float) -> str:
        return f"{self._currency}{amount:,.2f}"

    def _check_items(self, receipt: Receipt) -> list[ValidationIssue]:
        issues = []

        if not receipt.items:
            issues.append(ValidationIssue(
                field="items",
                issue_type="empty",
                message="No line items were found on this receipt",
                severity="warning",
                suggested_fix="Try a sharper photo with the whole receipt in frame",
            ))
            return issues

        for item in receipt.items:
            if item.price < 0:
                issues.append(ValidationIssue(
                    field=item.id,
                    issue_type="negative_price",
                    message=f"'{item.name}' has a negative price ({self._money(item.price)})",
                    severity="warning",
                    suggested_fix="This may be a discount line; assign it like any other item",
                ))

        return issues

    def _check_totals(self, receipt: Receipt) -> list[ValidationIssue]:
        issues = []

        if receipt.items and receipt.subtotal == 0:
            issues.append(ValidationIssue(
                field="subtotal",
                issue_type="missing_subtotal",
                message="No subtotal was found; tax and tip will be split on raw amounts",
                severity="info",
            ))
        elif receipt.items and abs(receipt.items_sum - receipt.subtotal) > self._tolerance:
            issues.append(ValidationIssue(
                field="subtotal",
                issue_type="subtotal_mismatch",
                message=(
                    f"Items add up to {self._money(receipt.items_sum)} but the "
                    f"subtotal says {self._money(receipt.subtotal)}"
                ),
                severity="warning",
                suggested_fix="Check whether an item was missed or read twice",
            ))

        if receipt.total:
            expected = receipt.subtotal + receipt.tax + receipt.tip
            if abs(expected - receipt.total) > self._tolerance:
                issues.append(ValidationIssue(
                    field="total",
                    issue_type="total_mismatch",
                    message=(
                        f"Subtotal, tax and tip add up to {self._money(expected)} "
                        f"but the total says {self._money(receipt.total)}"
                    ),
                    severity="info",
                ))

        return issues

    def validate(self, receipt: Receipt) -> ValidationResult:
        """
        Run all checks.

        Returns:
            ValidationResult with all issues found
        """
        issues = self._check_items(receipt) + self._check_totals(receipt)

        return ValidationResult(
            receipt_id=receipt.receipt_id,
            is_consistent=not any(i.severity == "warning" for i in issues),
            issues=issues,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of the check.

        This is what the UI shows under the receipt.
        """
        if not result.issues:
            return "✅ The receipt adds up."

        lines = []

        if result.warnings:
            lines.append("⚠️ Please double-check the following:")
            for issue in result.issues:
                if issue.severity == "warning":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        notes = [i for i in result.issues if i.severity == "info"]
        if notes:
            if lines:
                lines.append("")
            lines.append("ℹ️ Good to know:")
            for issue in notes:
                lines.append(f"   • {issue.message}")

        lines.append("")
        lines.append("You can still split the bill.")

        return "\n".join(lines)
