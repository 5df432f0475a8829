# =============================================================================
# main.py - CLI entry point
# =============================================================================

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from core.ad_client import ActiveDirectoryClient
from core.exceptions import ProvisioningError
from core.models import Action
from core.password import PasswordStrategy, DEFAULT_LENGTH
from core.pipeline import ProvisioningPipeline
from core.resolver import AccountOptions
from utils.config import Config, ConfigError
from utils.csv_utils import CSVHandler
from utils.home_directory import HomeDirectoryProvisioner
from utils.notifier import EmailNotifier, NotificationError
from utils.report import ReportWriter


def setup_logging(level: str = "INFO", log_dir: str = "logs") -> str:
    """Setup logging configuration with both console and file output"""
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    # Generate date-stamped filename
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_path / f"user_provisioning_{timestamp}.log"

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Always log DEBUG to file
    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Console: {level.upper()}, File: DEBUG")
    logger.info(f"Log file: {log_filename}")

    return str(log_filename)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bulk Active Directory user provisioning")
    subparsers = parser.add_subparsers(dest='action', help='Action to perform')

    for action in Action:
        action_parser = subparsers.add_parser(action.value, help=f'{action.value.title()} users')
        if action == Action.REPORT:
            action_parser.add_argument('input_csv', nargs='?', help='Optional input CSV file path (ignored)')
        else:
            action_parser.add_argument('input_csv', help='Input CSV file path')
        action_parser.add_argument('--dry-run', action='store_true',
                                   help='Log intended changes without modifying the directory')
        action_parser.add_argument('--report-dir', default='reports', help='Directory for report files')

        if action == Action.CREATE:
            action_parser.add_argument('--password', help='Use this initial password for every new account')
            action_parser.add_argument('--password-length', type=int, default=DEFAULT_LENGTH,
                                       help='Length of generated passwords')
            action_parser.add_argument('--home-dirs', action='store_true',
                                       help='Create a home directory under HOME_ROOT')
            action_parser.add_argument('--notify', action='store_true',
                                       help='Email new users and the administrator')

    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    parser.add_argument('--log-dir', default='logs', help='Directory for log files')
    parser.add_argument('--env-file', help='Read configuration from this .env file')
    return parser


def build_password_strategy(args, config: Config) -> PasswordStrategy:
    password = getattr(args, 'password', None) or config.default_password
    if password:
        return PasswordStrategy.fixed(password)
    return PasswordStrategy.generated(getattr(args, 'password_length', DEFAULT_LENGTH))


def build_pipeline(args, config: Config, gateway) -> ProvisioningPipeline:
    """Assemble the pipeline from CLI options and configuration

    Raises:
        ConfigError: If a requested feature is not configured
    """
    home_provisioner = None
    if getattr(args, 'home_dirs', False):
        if not config.home_root:
            raise ConfigError("--home-dirs requires HOME_ROOT")
        home_provisioner = HomeDirectoryProvisioner(config.home_root, config.home_drive)

    notifier = None
    if getattr(args, 'notify', False):
        if not config.smtp_server:
            raise ConfigError("--notify requires SMTP_SERVER")
        notifier = EmailNotifier(
            config.smtp_server, config.smtp_port,
            username=config.smtp_username, password=config.smtp_password,
            sender=config.smtp_from, use_tls=config.smtp_use_tls,
            admin_email=config.admin_email,
        )

    return ProvisioningPipeline(
        gateway,
        AccountOptions(domain=config.ad_domain, users_root=config.users_root_dn),
        group_policy=config.load_group_policy(),
        password_strategy=build_password_strategy(args, config),
        home_provisioner=home_provisioner,
        notifier=notifier,
        dry_run=args.dry_run,
    )


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.action:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level, args.log_dir)
    logger = logging.getLogger(__name__)

    # Load configuration
    config = Config(args.env_file)
    if not config.validate_ad_config():
        missing_vars = config.get_missing_ad_vars()
        logger.error(f"Missing required environment variables: {missing_vars}")
        sys.exit(1)

    try:
        action = Action.parse(args.action)

        records = []
        if args.input_csv:
            if not Path(args.input_csv).exists():
                logger.error(f"Input file not found: {args.input_csv}")
                sys.exit(1)
            records = CSVHandler.read_records(args.input_csv)

        ad_client = ActiveDirectoryClient(
            config.ad_server, config.ad_username,
            config.ad_password, config.base_dn,
            use_ssl=config.ad_use_ssl
        )
        pipeline = build_pipeline(args, config, ad_client)
        validation = pipeline.validate(records, action)
    except (ProvisioningError, ConfigError, ValueError) as e:
        logger.error(f"Cannot start {args.action}: {e}")
        sys.exit(1)

    if not ad_client.connect():
        logger.error("Could not connect to Active Directory, nothing was changed")
        sys.exit(1)

    try:
        result = pipeline.run(action, records, validation=validation)
    except Exception as e:
        logger.error(f"Processing failed: {e}")
        sys.exit(1)
    finally:
        ad_client.disconnect()

    paths = ReportWriter(args.report_dir).write(result)
    for kind, path in paths.items():
        logger.info(f"{kind} report: {path}")

    if pipeline.notifier and not result.dry_run:
        try:
            pipeline.notifier.send_summary(action.value, result.counters, paths.get('html'))
        except NotificationError as e:
            logger.warning(f"Could not send run summary: {e}")

    counters = result.counters
    logger.info(f"Completed {action.value}: {counters.success_count} succeeded, "
                f"{counters.failure_count} failed, {counters.warning_count} warnings")
    sys.exit(0 if result.succeeded else 1)


if __name__ == "__main__":
    main()
