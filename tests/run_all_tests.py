#!/usr/bin/env python3
"""
Test runner for the trivia game.
Runs the unit and integration suites and prints a summary report.

Usage:
    python -m tests.run_all_tests [category]
"""
import sys
import time
import unittest

TEST_MODULES = {
    'unit': [
        'tests.test_question_bank',
        'tests.test_round_engine',
        'tests.test_timer_lifecycle',
        'tests.test_settings_manager',
        'tests.test_bank_loader',
        'tests.test_navigation',
    ],
    'integration': ['tests.test_integration_comprehensive'],
    'bank': ['tests.test_question_bank', 'tests.test_bank_loader'],
    'engine': ['tests.test_round_engine', 'tests.test_timer_lifecycle'],
    'settings': ['tests.test_settings_manager'],
    'navigation': ['tests.test_navigation'],
}


def build_suite(module_names):
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()
    for module_name in module_names:
        suite.addTest(loader.loadTestsFromName(module_name))
        print(f"✓ Loaded tests from {module_name}")
    return suite


def run_test_suite(module_names):
    """Run the given test modules and print a summary report."""
    print("=" * 70)
    print("Trivia Rounds - Test Suite")
    print("=" * 70)

    suite = build_suite(module_names)
    runner = unittest.TextTestRunner(verbosity=2, stream=sys.stdout, buffer=True)

    start_time = time.time()
    result = runner.run(suite)
    end_time = time.time()

    total_tests = result.testsRun
    failures = len(result.failures)
    errors = len(result.errors)
    skipped = len(result.skipped)
    passed = total_tests - failures - errors - skipped

    print("\n" + "=" * 70)
    print("Test Summary Report")
    print("=" * 70)
    print(f"Total Tests Run: {total_tests}")
    print(f"Passed: {passed}")
    print(f"Failed: {failures}")
    print(f"Errors: {errors}")
    print(f"Skipped: {skipped}")
    print(f"Success Rate: {(passed/total_tests)*100:.1f}%" if total_tests > 0 else "N/A")
    print(f"Execution Time: {end_time - start_time:.2f} seconds")

    return result.wasSuccessful()


if __name__ == '__main__':
    if len(sys.argv) > 1:
        category = sys.argv[1]
        if category not in TEST_MODULES:
            print(f"Unknown category: {category}")
            print(f"Available categories: {', '.join(TEST_MODULES.keys())}")
            sys.exit(2)
        modules = TEST_MODULES[category]
    else:
        modules = TEST_MODULES['unit'] + TEST_MODULES['integration']

    sys.exit(0 if run_test_suite(modules) else 1)
