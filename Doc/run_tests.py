#!/usr/bin/env python
"""
Run the test suite for every momentum app
Usage: python Doc/run_tests.py [app ...]
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'momentum.core',
    'momentum.people',
    'momentum.projects',
    'momentum.funding',
    'momentum.orders',
    'momentum.inventory',
    'momentum.events',
    'momentum.eln',
    'momentum.reports',
]

if __name__ == "__main__":
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'momentum.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    labels = [f'momentum.{name}' for name in sys.argv[1:]] or APPS
    failures = test_runner.run_tests(labels)
    sys.exit(bool(failures))
