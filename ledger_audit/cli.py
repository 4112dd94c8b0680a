"""
Command line entry point.

    ledger-audit audit -f chase.csv -s Chase -a "Sapphire" --start 03-01-21 --end 03-31-21
    ledger-audit accounts
"""

import argparse
import logging
import sys

from ledger_audit.audit import audit_range, clamp_end_date
from ledger_audit.coda import CodaClient
from ledger_audit.config import load_config
from ledger_audit.directory import AccountDirectory
from ledger_audit.exceptions import AuditError
from ledger_audit.ledger import LedgerFetcher
from ledger_audit.loaders import load_transactions
from ledger_audit.models import SourceKind
from ledger_audit.report import format_audit_summary, format_verdict_table, save_audit_results
from ledger_audit.utils import parse_cli_date, setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNRECONCILED = 3


def add_common_arguments(parser, suppress=False):
    parser.add_argument('--config', type=str, default=argparse.SUPPRESS if suppress else None,
                        help='Path to YAML config file')
    parser.add_argument('--debug', action='store_true', default=argparse.SUPPRESS if suppress else False,
                        help='Enable debug logging')


def build_parser():
    parser = argparse.ArgumentParser(prog='ledger-audit', description='Audit bank exports against the ledger')
    add_common_arguments(parser)

    # Accepted after the subcommand too; SUPPRESS keeps values given before it
    common = argparse.ArgumentParser(add_help=False)
    add_common_arguments(common, suppress=True)

    subparsers = parser.add_subparsers(dest='command', required=True)

    audit = subparsers.add_parser('audit', parents=[common], help='audit a transaction export against the ledger')
    audit.add_argument('-f', '--filepath', required=True,
                       help='Path to the transaction CSV')
    audit.add_argument('-s', '--source', required=True,
                       choices=[kind.value for kind in SourceKind],
                       help='Format of the transaction CSV')
    audit.add_argument('-a', '--account', required=True,
                       help='Ledger account name')
    audit.add_argument('--start', required=True,
                       help='First date to audit, MM-DD-YY')
    audit.add_argument('--end', default=None,
                       help='Last date to audit, MM-DD-YY (defaults to --start)')
    audit.add_argument('--max-days', type=int, default=None,
                       help='Maximum number of days to audit')
    audit.add_argument('--output', type=str, default=None,
                       help='Write results CSV to this file or directory')
    audit.add_argument('--fail-on-unreconciled', action='store_true',
                       help='Exit with status 3 when any day does not reconcile')

    subparsers.add_parser('accounts', parents=[common], help='list ledger accounts')
    return parser


def run_audit(args, settings, client):
    start_date = parse_cli_date(args.start)
    end_date = parse_cli_date(args.end) if args.end else start_date
    max_days = args.max_days if args.max_days is not None else settings.audit.max_days

    # Only fetch the span that will actually be audited
    fetch_end = clamp_end_date(start_date, end_date, max_days)

    transactions = load_transactions(args.source, args.filepath)
    account = AccountDirectory(client, settings).resolve(args.account)
    ledger_entries = LedgerFetcher(client, settings).fetch_range(start_date, fetch_end)

    result = audit_range(account, transactions, ledger_entries, start_date, end_date, max_days=max_days)

    print(format_verdict_table(result.verdict))
    print()
    print(format_audit_summary(result))

    if args.output:
        path = save_audit_results(result, args.output)
        print(f"\nResults written to {path}")

    if args.fail_on_unreconciled and not result.is_reconciled:
        return EXIT_UNRECONCILED
    return EXIT_OK


def run_accounts(args, settings, client):
    accounts = AccountDirectory(client, settings).list_accounts()
    for account in sorted(accounts, key=lambda a: a.name):
        print(f"{account.name}\t{account.id}\t{account.directionality.value}")
    return EXIT_OK


COMMANDS = {
    'audit': run_audit,
    'accounts': run_accounts,
}


def main(argv=None):
    """Main execution function."""
    args = build_parser().parse_args(argv)

    try:
        setup_logging(debug=args.debug)
        settings = load_config(args.config)
        client = CodaClient.from_settings(settings)
        return COMMANDS[args.command](args, settings, client)
    except (AuditError, ValueError, OSError) as e:
        logger.error(f"Error during {args.command}: {str(e)}")
        return EXIT_ERROR


if __name__ == '__main__':
    sys.exit(main())
