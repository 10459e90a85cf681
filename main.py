"""Timesheet CLI."""
import argparse
import logging
from typing import Mapping, Optional, Sequence

from config import load_config, setup_logging
from domain import HOUR_FIELDS
from services import TimesheetService
from utils import format_currency, format_date_range, week_to_dataframe


def print_summary(service: TimesheetService) -> None:
    code = service.settings.currency
    totals = service.totals()
    print(format_date_range(service.window.monday))
    print(week_to_dataframe(service.week_breakdown()).to_string(index=False))
    for label, gross, tax, net in (
        ("Week", totals.week_total, totals.week_tax, totals.week_net),
        ("Month", totals.month_total, totals.month_tax, totals.month_net),
        ("Year", totals.year_total, totals.year_tax, totals.year_net),
    ):
        print(f"{label:<6} gross {format_currency(gross, code)}"
              f"  tax {format_currency(tax, code)}  net {format_currency(net, code)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Timesheet Tracking')
    sub = parser.add_subparsers(dest='command')

    summary = sub.add_parser('summary', help='Week table and week/month/year totals')
    summary.add_argument('--weeks', type=int, default=0, help='Weeks to move from the current one')

    log = sub.add_parser('log', help='Set hours for a day')
    log.add_argument('date', help='Date (YYYY-MM-DD)')
    log.add_argument('field', choices=HOUR_FIELDS)
    log.add_argument('hours')

    rate = sub.add_parser('rate', help='Set the hourly rate')
    rate.add_argument('value')

    tax = sub.add_parser('tax', help='Set the tax rate in percent')
    tax.add_argument('value')

    currency = sub.add_parser('currency', help='Set the currency code')
    currency.add_argument('code')

    export = sub.add_parser('export', help='Write timesheet-data.json into a directory')
    export.add_argument('directory')

    imp = sub.add_parser('import', help='Replace all data from a JSON file')
    imp.add_argument('path')

    clear = sub.add_parser('clear', help='Erase all saved data')
    clear.add_argument('--yes', action='store_true', help='Confirm erasing everything')
    return parser


def main(argv: Optional[Sequence[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config(environ)
    setup_logging(cfg.log_level)
    service = TimesheetService.from_config(cfg)
    logging.debug("Using store %s", cfg.database_url)

    command = args.command or 'summary'
    ok = True
    if command == 'summary':
        if getattr(args, 'weeks', 0):
            service.window = service.window.shift(args.weeks)
        print_summary(service)
    elif command == 'log':
        ok = service.set_hours(args.date, args.field, args.hours)
    elif command == 'rate':
        ok = service.set_rate(args.value)
    elif command == 'tax':
        ok = service.set_tax_rate(args.value)
    elif command == 'currency':
        ok = service.set_currency(args.code)
    elif command == 'export':
        path = service.export_to_file(args.directory)
        ok = path is not None
        if ok:
            print(path)
    elif command == 'import':
        ok = service.import_from_file(args.path)
    elif command == 'clear':
        if not args.yes:
            print('Refusing to clear without --yes')
            return 1
        ok = service.clear()

    if service.message is not None:
        print(service.message.text)
    service.repo.engine.dispose()
    return 0 if ok else 1


if __name__ == '__main__':
    raise SystemExit(main())
