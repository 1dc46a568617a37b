"""
Recompute denormalised counters from order history.

Item.sales / Item.revenue and Account.total_purchases / Account.total_spent
are maintained incrementally; after a PartialFailure (or any manual data fix)
this command brings them back in line with the non-cancelled orders.
"""
import logging
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Sum

from Accounts import ledger
from Inventory.models import Item
from Reports.reports import ZERO, live_lines

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Recompute item sales/revenue and account purchase totals from order history."

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Report differences without writing.")

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        item_fixes = self._reconcile_items(dry_run)
        account_fixes = self._reconcile_accounts(dry_run)
        verb = "would fix" if dry_run else "fixed"
        self.stdout.write(self.style.SUCCESS(f"{verb} {item_fixes} item(s) and {account_fixes} account(s)"))

    def _reconcile_items(self, dry_run):
        sold = {
            r["item_id"]: (r["units"], r["revenue"] or ZERO)
            for r in live_lines().values("item_id").annotate(
                units=Sum("quantity"), revenue=Sum("line_total")
            )
        }
        fixes = 0
        with transaction.atomic():
            for item in Item.objects.select_for_update().order_by("pk"):
                units, revenue = sold.get(item.pk, (0, ZERO))
                revenue = Decimal(revenue).quantize(Decimal("0.01"))
                if item.sales == units and item.revenue == revenue:
                    continue
                fixes += 1
                self.stdout.write(
                    f"item {item.pk} ({item.name}): sales {item.sales}->{units} revenue {item.revenue}->{revenue}"
                )
                if not dry_run:
                    Item.objects.filter(pk=item.pk).update(sales=units, revenue=revenue)
        return fixes

    def _reconcile_accounts(self, dry_run):
        fixes = 0
        Account = get_user_model()
        for account in Account.objects.order_by("pk"):
            before = (account.total_purchases, account.total_spent)
            after = ledger.recompute_account_totals(account, save=not dry_run)
            if before != after:
                fixes += 1
                self.stdout.write(f"account {account.pk} ({account.username}): {before} -> {after}")
        if fixes and not dry_run:
            logger.info("reconcile: %s account(s) corrected", fixes)
        return fixes
