"""Check suites, executed in this fixed order."""

from platform_monitor.suites.base import SuiteContext
from platform_monitor.suites.dashboard import run_dashboard_suite
from platform_monitor.suites.database import run_database_suite
from platform_monitor.suites.demo import run_demo_suite
from platform_monitor.suites.email import run_email_suite
from platform_monitor.suites.engine import run_engine_suite
from platform_monitor.suites.push import run_push_suite
from platform_monitor.suites.sales import run_sales_suite
from platform_monitor.suites.site import run_site_suite

SUITES = (
    run_site_suite,
    run_engine_suite,
    run_demo_suite,
    run_dashboard_suite,
    run_push_suite,
    run_sales_suite,
    run_database_suite,
    run_email_suite,
)

__all__ = ["SUITES", "SuiteContext"]
