from django.core.management.base import BaseCommand
from django.db import transaction
from momentum.core.cache_utils import invalidate_funding_cache
from momentum.funding.models import FundingAccount
from momentum.funding.services import recalculate_funding


class Command(BaseCommand):
    help = 'Rebuilds funding account and allocation totals from the orders charged to them'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report drift without saving changes',
        )
        parser.add_argument(
            '--account',
            type=int,
            help='Only recalculate this account id',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No changes will be saved."))

        accounts = FundingAccount.objects.all()
        if options.get('account'):
            accounts = accounts.filter(pk=options['account'])
        self.stdout.write(f"Recalculating {accounts.count()} funding accounts...")

        with transaction.atomic():
            drift = recalculate_funding(accounts)

            for entry in drift:
                target = f"allocation {entry['allocation']}" if entry['allocation'] else f"account {entry['account']}"
                self.stdout.write(self.style.NOTICE(
                    f"  - {target} {entry['field']}: {entry['old']} -> {entry['new']}"
                ))

            if not drift:
                self.stdout.write("  - All totals match the order ledger")

            if dry_run:
                self.stdout.write(self.style.WARNING(f"\nDry run complete ({len(drift)} corrections). Rolling back changes."))
                transaction.set_rollback(True)
            else:
                self.stdout.write(self.style.SUCCESS(f"\nRecalculation complete: {len(drift)} corrections committed."))

        if not dry_run:
            invalidate_funding_cache()
