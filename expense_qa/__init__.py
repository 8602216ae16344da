"""
Expense API QA harness.

    expense_qa.api_testing.framework   scaffold, clients, validators, factories
    expense_qa.api_testing.tests       live suites (opt-in: --run-live)
    expense_qa.unit                    offline tests of the harness itself

All content is demo-safe and does not include production secrets.
"""
