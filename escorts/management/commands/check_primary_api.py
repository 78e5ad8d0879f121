# escorts/management/commands/check_primary_api.py
import logging
import os
import time

from django.core.management.base import BaseCommand, CommandError

from escorts.exceptions import UpstreamUnavailableError
from escorts.services.primary_client import PrimaryApiClient

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Call the primary API's health, stats and list endpoints and report the results."

    def add_arguments(self, parser):
        parser.add_argument("--count", type=int, default=3, help="Number of test rounds")
        parser.add_argument("--token", default=os.getenv("PRIMARY_API_TOKEN", ""),
                            help="API token for the authenticated endpoints")
        parser.add_argument("--delay", type=float, default=1.0, help="Seconds between rounds")

    def handle(self, *args, **opts):
        count = max(1, opts["count"])
        headers = {"Authorization": f"Token {opts['token']}"} if opts["token"] else {}
        client = PrimaryApiClient()
        ok = 0
        logger.info("primary API check started: url=%s rounds=%s", client.base_url, count)

        for i in range(1, count + 1):
            self.stdout.write(f"Round #{i}: {client.base_url}")
            try:
                self.stdout.write("  -> health")
                client.health()
                self.stdout.write("  -> dashboard stats")
                client.dashboard_stats(headers=headers)
                self.stdout.write("  -> escort list")
                client.list_escorts(headers=headers)
            except UpstreamUnavailableError as exc:
                cause = exc.__cause__ or exc
                self.stdout.write(self.style.ERROR(f"  failed: {cause}"))
            else:
                ok += 1
                self.stdout.write(self.style.SUCCESS("  ok"))
            if i < count and opts["delay"] > 0:
                time.sleep(opts["delay"])

        rate = round(ok / count * 100, 1)
        logger.info("primary API check finished: %s/%s ok (%s%%)", ok, count, rate)
        summary = f"{ok}/{count} rounds succeeded ({rate}%)"
        if ok != count:
            raise CommandError(summary)
        self.stdout.write(self.style.SUCCESS(summary))
