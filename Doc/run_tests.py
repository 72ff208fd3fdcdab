#!/usr/bin/env python
"""
Test runner script for the full feedtrade suite (wrap with `coverage run` for coverage)
Usage: python Doc/run_tests.py [app_label ...]
"""
import os
import sys
from pathlib import Path

import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'feedtrade.core',
    'feedtrade.catalog',
    'feedtrade.locations',
    'feedtrade.seasons',
    'feedtrade.parties',
    'feedtrade.sales',
    'feedtrade.purchasing',
    'feedtrade.logistics',
    'feedtrade.inventory',
    'feedtrade.reports',
]

if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'feedtrade.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner(verbosity=2)
    failures = test_runner.run_tests(sys.argv[1:] or APPS)
    sys.exit(bool(failures))
