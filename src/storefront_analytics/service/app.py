"""
Main dashboard service entry point
"""
import os
import sys
import json
from datetime import datetime
from typing import Dict, Any, Callable, Optional

from storefront_analytics.analytics.frames import current_time
from storefront_analytics.analytics.goals import GoalTracker
from storefront_analytics.analytics.insights import CustomerInsightsCalculator
from storefront_analytics.analytics.reports import ReportBuilder
from storefront_analytics.analytics.windows import filter_orders, normalize_window
from storefront_analytics.common.aws_clients import AWSConfig
from storefront_analytics.common.error_handlers import (
    ConfigurationError, ReportExportError, StorageError, create_error_response, handle_exception
)
from storefront_analytics.common.logging_config import setup_logging
from storefront_analytics.common.s3_utils import S3Utils
from storefront_analytics.config.analytics_config import AnalyticsConfig
from storefront_analytics.reporting.csv_export import (
    analytics_csv, export_filename, insights_csv, report_csv, report_summary
)
from storefront_analytics.storage.order_source import FileOrderSource, S3OrderSource
from storefront_analytics.validation.order_quality import OrderQualityValidator


VIEWS = ('analytics', 'report', 'insights', 'goals', 'export')

EXPORT_KINDS = ('analytics', 'report', 'insights')


class DashboardService:
    """Merchant dashboard orchestrator"""

    def __init__(self, order_source=None, config: Optional[AnalyticsConfig] = None,
                 aws_config: Optional[AWSConfig] = None, s3_utils: Optional[S3Utils] = None):
        self.logger = setup_logging("dashboard-service")
        self.config = config or AnalyticsConfig()
        self.aws_config = aws_config or AWSConfig()
        self._s3_utils = s3_utils
        self.order_source = order_source or S3OrderSource(self.aws_config, s3_utils)

        self.report_builder = ReportBuilder(self.config)
        self.insights_calculator = CustomerInsightsCalculator(self.config)
        self.goal_tracker = GoalTracker(self.config)
        self.quality_validator = OrderQualityValidator()

        self.logger.info("Dashboard service initialized",
                        environment=self.config.environment,
                        timezone=self.config.timezone)

    @property
    def s3_utils(self) -> S3Utils:
        if self._s3_utils is None:
            self._s3_utils = S3Utils(aws_config=self.aws_config)
        return self._s3_utils

    def load_orders(self, owner_id: str):
        """Fetch a merchant's orders and log data quality findings"""
        orders = self.order_source.fetch_orders(owner_id)

        quality = self.quality_validator.validate_orders(orders)
        if quality['errors'] or quality['warnings']:
            self.logger.warning("Order data quality issues",
                              owner_id=owner_id,
                              error_count=len(quality['errors']),
                              warning_count=len(quality['warnings']))
        return orders

    def analytics(self, owner_id: str, window: Optional[str] = None,
                  estimated_visits: Any = None, now: Any = None, custom_start: Any = None,
                  custom_end: Any = None) -> Dict[str, Any]:
        return self._run('analytics', owner_id, lambda orders: self.report_builder.build_analytics(
            orders, window=window, estimated_visits=estimated_visits, now=now,
            custom_start=custom_start, custom_end=custom_end
        ))

    def report(self, owner_id: str, window: Optional[str] = None, custom_start: Any = None,
               custom_end: Any = None, estimated_visits: Any = None,
               now: Any = None) -> Dict[str, Any]:
        def build(orders):
            report = self.report_builder.build_report(
                orders, window=window, estimated_visits=estimated_visits, now=now,
                custom_start=custom_start, custom_end=custom_end
            )
            report['summary'] = report_summary(report, self.config.currency_symbol,
                                               today=self._today(now))
            return report

        return self._run('report', owner_id, build)

    def insights(self, owner_id: str, window: Optional[str] = None, now: Any = None,
                 custom_start: Any = None, custom_end: Any = None) -> Dict[str, Any]:
        return self._run('insights', owner_id, lambda orders: self._build_insights(
            orders, window, now, custom_start, custom_end
        ))

    def goals(self, owner_id: str, goals: Optional[Dict[str, Any]] = None,
              now: Any = None) -> Dict[str, Any]:
        return self._run('goals', owner_id,
                         lambda orders: self.goal_tracker.progress(orders, goals, now=now))

    def export_report(self, owner_id: str, window: Optional[str] = None, kind: str = 'report',
                      custom_start: Any = None, custom_end: Any = None,
                      estimated_visits: Any = None, now: Any = None) -> Dict[str, Any]:
        """
        Build an analytics, report or insights view and upload it as CSV

        Args:
            owner_id: Merchant identifier
            window: Window tag, defaults to the configured window
            kind: One of EXPORT_KINDS
            now: Reference time, also dates the file name

        Returns:
            Dict with the export kind, window, bucket and key
        """
        if kind not in EXPORT_KINDS:
            raise ValueError(f"Unknown export kind {kind!r}, expected one of {EXPORT_KINDS}")

        def build(orders):
            symbol = self.config.currency_symbol
            if kind == 'analytics':
                payload = self.report_builder.build_analytics(
                    orders, window=window, estimated_visits=estimated_visits, now=now,
                    custom_start=custom_start, custom_end=custom_end
                )
                content = analytics_csv(payload, symbol)
            elif kind == 'insights':
                payload = self._build_insights(orders, window, now, custom_start, custom_end)
                content = insights_csv(payload['insights'], symbol)
            else:
                payload = self.report_builder.build_report(
                    orders, window=window, estimated_visits=estimated_visits, now=now,
                    custom_start=custom_start, custom_end=custom_end
                )
                content = report_csv(payload)

            filename = export_filename(kind, payload['window'], self._today(now))
            bucket = self.aws_config.s3_config['reports_bucket']
            key = self.aws_config.report_key(owner_id, filename)
            try:
                self.s3_utils.put_object(bucket, key, content, content_type='text/csv')
            except StorageError as e:
                raise ReportExportError(f"Failed to export {kind} for {owner_id}: {e}") from e

            self.logger.info("Report exported", owner_id=owner_id, kind=kind,
                             bucket=bucket, key=key)
            return {'kind': kind, 'window': payload['window'], 'bucket': bucket, 'key': key}

        return self._run('export', owner_id, build)

    def _build_insights(self, orders, window, now, custom_start, custom_end) -> Dict[str, Any]:
        window_tag = normalize_window(window if window is not None else self.config.default_window)
        filtered = filter_orders(orders, window_tag, now, custom_start, custom_end,
                                 self.config.timezone)
        return {
            'window': window_tag,
            'insights': self.insights_calculator.calculate_insights(filtered, now=now),
            'customer_profiles': self.insights_calculator.customer_profiles(filtered),
            'behavior': self.insights_calculator.behavior(filtered)
        }

    def _today(self, now: Any = None):
        """Calendar date of ``now`` in the reporting timezone"""
        return current_time(now, self.config.timezone).date()

    def _run(self, view: str, owner_id: str,
             build: Callable[[Any], Dict[str, Any]]) -> Dict[str, Any]:
        start_time = datetime.now()

        try:
            self.logger.info("Building dashboard view", view=view, owner_id=owner_id)
            orders = self.load_orders(owner_id)
            payload = build(orders)

            processing_time = (datetime.now() - start_time).total_seconds()
            self.logger.info("Dashboard view built", view=view, owner_id=owner_id,
                           order_count=len(orders), processing_time=processing_time)

            return {
                'success': True,
                'view': view,
                'owner_id': owner_id,
                **payload,
                'processing_time': processing_time,
                'timestamp': datetime.now().isoformat()
            }

        except StorageError as e:
            processing_time = (datetime.now() - start_time).total_seconds()
            error_details = handle_exception(e, self.logger)

            return {
                'success': False,
                'view': view,
                'owner_id': owner_id,
                'error': error_details,
                'processing_time': processing_time,
                'timestamp': datetime.now().isoformat()
            }


def parse_event(argv) -> Dict[str, Any]:
    """Read the request from DASHBOARD_INPUT or ``owner_id view [window]`` arguments"""
    event_json = os.getenv('DASHBOARD_INPUT')
    if event_json:
        return json.loads(event_json)

    if len(argv) >= 3:
        event = {'owner_id': argv[1], 'view': argv[2]}
        if len(argv) >= 4:
            event['window'] = argv[3]
        return event

    raise ValueError("No input provided")


def dispatch(service: DashboardService, event: Dict[str, Any]) -> Dict[str, Any]:
    owner_id = event.get('owner_id')
    view = event.get('view', 'analytics')
    if not owner_id:
        raise ValueError("Missing owner_id in event")
    if view not in VIEWS:
        raise ValueError(f"Unknown view {view!r}, expected one of {VIEWS}")

    window = event.get('window')
    custom_start = event.get('custom_start')
    custom_end = event.get('custom_end')
    if view == 'analytics':
        return service.analytics(owner_id, window, event.get('estimated_visits'),
                                 custom_start=custom_start, custom_end=custom_end)
    if view == 'report':
        return service.report(owner_id, window, custom_start, custom_end,
                              event.get('estimated_visits'))
    if view == 'insights':
        return service.insights(owner_id, window, custom_start=custom_start,
                                custom_end=custom_end)
    if view == 'goals':
        return service.goals(owner_id, event.get('goals'))
    return service.export_report(owner_id, window, kind=event.get('kind', 'report'),
                                 custom_start=custom_start, custom_end=custom_end,
                                 estimated_visits=event.get('estimated_visits'))


def main():
    """Main entry point"""
    try:
        event = parse_event(sys.argv)

        orders_file = event.get('orders_file') or os.getenv('ORDERS_FILE')
        order_source = FileOrderSource(orders_file) if orders_file else None

        service = DashboardService(order_source=order_source)
        result = dispatch(service, event)

        print(json.dumps(result, indent=2, default=str))
        sys.exit(0 if result['success'] else 1)

    except (ConfigurationError, ValueError, TypeError) as e:
        error_result = {
            'success': False,
            'error': create_error_response(type(e).__name__, str(e))
        }
        print(json.dumps(error_result))
        sys.exit(1)


if __name__ == "__main__":
    main()
