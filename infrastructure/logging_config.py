"""
Logging configuration for the checkout workflow.

Console output plus rotating log files, with a dedicated payments log shared by
the orchestrator, committer and reconciliation reporter.
"""

import logging
import logging.handlers
import os
import shutil
from datetime import datetime
from typing import Optional

from tracking import t

from .settings import AppSettings, get_settings

PAYMENT_LOGGERS = ('PaymentOrchestrator', 'BookingCommitter', 'ReconciliationReporter')


def _clear_directory(log_dir: str) -> None:
    t('infrastructure.logging_config._clear_directory')
    if not os.path.exists(log_dir):
        return
    for filename in os.listdir(log_dir):
        file_path = os.path.join(log_dir, filename)
        try:
            if os.path.isfile(file_path) or os.path.islink(file_path):
                os.unlink(file_path)
            elif os.path.isdir(file_path):
                shutil.rmtree(file_path)
        except OSError as e:
            print(f'Failed to delete {file_path}. Reason: {e}')


def setup_logging(settings: Optional[AppSettings] = None, *, clear_previous: bool = True) -> None:
    """
    Set up logging with console and rotating file handlers.

    Previous logs in the configured directory are removed before starting a
    new session unless ``clear_previous`` is False.
    """
    t('infrastructure.logging_config.setup_logging')
    settings = settings or get_settings()
    production_mode = settings.production_mode
    log_dir = settings.log_directory

    if clear_previous:
        _clear_directory(log_dir)
    os.makedirs(log_dir, exist_ok=True)

    main_log_file = os.path.join(log_dir, 'checkout.log')
    error_log_file = os.path.join(log_dir, 'checkout_errors.log')
    payments_log_file = os.path.join(log_dir, 'payments.log')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING if production_mode else logging.DEBUG)
    root_logger.handlers = []

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d in %(funcName)s()] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    main_file_handler = logging.handlers.RotatingFileHandler(
        main_log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    main_file_handler.setLevel(logging.WARNING if production_mode else logging.INFO)
    main_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(main_file_handler)

    error_file_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=5*1024*1024,  # 5MB
        backupCount=5,
        encoding='utf-8'
    )
    error_file_handler.setLevel(logging.ERROR)
    error_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(error_file_handler)

    # Payment and booking state changes are always kept at INFO, even in production
    payments_handler = logging.handlers.RotatingFileHandler(
        payments_log_file,
        maxBytes=20*1024*1024,  # 20MB
        backupCount=5,
        encoding='utf-8'
    )
    payments_handler.setLevel(logging.INFO if production_mode else logging.DEBUG)
    payments_handler.setFormatter(detailed_formatter)

    for name in PAYMENT_LOGGERS:
        component_logger = logging.getLogger(name)
        component_logger.addHandler(payments_handler)
        component_logger.setLevel(logging.INFO if production_mode else logging.DEBUG)

    # Reduce noise from external libraries
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('telegram').setLevel(logging.INFO)

    root_logger.info("="*80)
    root_logger.info(f"Checkout Logging Initialized - {datetime.now()}")
    root_logger.info(f"Production Mode: {'ON' if production_mode else 'OFF'}")
    root_logger.info(f"Main log: {main_log_file}")
    root_logger.info(f"Error log: {error_log_file}")
    root_logger.info(f"Payments log: {payments_log_file}")
    root_logger.info("="*80)
