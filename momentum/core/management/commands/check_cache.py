"""
Django management command to check the cache configuration.

Usage:
    python manage.py check_cache
"""
from django.core.management.base import BaseCommand, CommandError
from django.core.cache import cache
from django.conf import settings

from momentum.core.cache_utils import cached_query, invalidate_cache_pattern, make_cache_key

CHECK_PREFIX = "cache_check"


@cached_query(cache_ttl=60, key_prefix=CHECK_PREFIX)
def _cached_probe(token):
    return {'token': token}


class Command(BaseCommand):
    help = 'Check cache configuration and verify cached summaries can be stored and invalidated'

    def handle(self, *args, **options):
        self.stdout.write("=" * 60)
        self.stdout.write(self.style.SUCCESS("Cache Configuration Check"))
        self.stdout.write("=" * 60)

        self.stdout.write(f"\n1. Cache Backend: {settings.CACHES['default']['BACKEND']}")
        self.stdout.write(f"2. Cache Location: {settings.CACHES['default'].get('LOCATION', 'N/A')}")

        self.stdout.write("\n3. Cache Operations:")
        self.stdout.write("-" * 60)

        failures = []
        cache.set('momentum_check_key', 'check_value', 60)
        if cache.get('momentum_check_key') == 'check_value':
            self.stdout.write(self.style.SUCCESS("Cache SET/GET: OK"))
        else:
            failures.append('SET/GET')
            self.stdout.write(self.style.ERROR("Cache SET/GET: value not returned"))

        cache.delete('momentum_check_key')
        if cache.get('momentum_check_key') is None:
            self.stdout.write(self.style.SUCCESS("Cache DELETE: OK"))
        else:
            failures.append('DELETE')
            self.stdout.write(self.style.ERROR("Cache DELETE: value still present"))

        self.stdout.write("\n4. Cached Summaries:")
        self.stdout.write("-" * 60)
        probe_key = make_cache_key(CHECK_PREFIX, 'probe')
        _cached_probe('probe')
        if cache.get(probe_key) == {'token': 'probe'}:
            self.stdout.write(self.style.SUCCESS("cached_query stored result: OK"))
        else:
            failures.append('cached_query')
            self.stdout.write(self.style.ERROR("cached_query: result not stored"))

        invalidate_cache_pattern(CHECK_PREFIX)
        if cache.get(probe_key) is None:
            self.stdout.write(self.style.SUCCESS("Pattern invalidation: OK"))
        else:
            failures.append('invalidation')
            self.stdout.write(self.style.ERROR("Pattern invalidation: key still present"))

        self.stdout.write("\n" + "=" * 60)
        if failures:
            self.stdout.write(self.style.WARNING("\nTroubleshooting:"))
            self.stdout.write("   1. Check REDIS_URL in the environment")
            self.stdout.write("   2. Verify the Redis service is reachable from this host")
            raise CommandError(f"Cache check failed: {', '.join(failures)}")
        self.stdout.write(self.style.SUCCESS("Cache is working"))
        self.stdout.write("=" * 60)
