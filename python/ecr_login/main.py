"""
ecr-login: print registry login commands for Amazon ECR.

Configuration is read from the environment (AWS_REGION, REGISTRIES,
TEMPLATE). The decoded credentials are rendered through a Go-style text
template, by default one `docker login` command per registry.
"""

import logging
import sys
from typing import Mapping, Optional, TextIO

from ecr_login.utils.auth import (
    create_session,
    decode_authorization_data,
    fetch_authorization_data,
    get_ecr_client,
    resolve_region,
)
from ecr_login.utils.config_manager import ConfigManager, DEFAULT_LOG_LEVEL, LOG_LEVELS
from ecr_login.utils.error_utils import EcrLoginError
from ecr_login.utils.logging_utils import log_exception, setup_logging
from ecr_login.utils.render import load_template, render_records, write_output

logger = logging.getLogger(__name__)


def run(stdout: Optional[TextIO] = None, environ: Optional[Mapping[str, str]] = None,
        config: Optional[ConfigManager] = None) -> None:
    """Fetch ECR credentials and write the rendered template to stdout.

    Raises:
        EcrLoginError: From whichever stage fails first
    """
    if config is None:
        config = ConfigManager(environ)

    registry_ids = config.get_registry_ids()
    region = resolve_region(config)

    session = create_session(region)
    ecr_client = get_ecr_client(session)

    authorization_data = fetch_authorization_data(ecr_client, registry_ids)
    records = decode_authorization_data(authorization_data)
    logger.info(f"Decoded {len(records)} authorization record(s) in region {region}")

    template = load_template(config.get_template_path())
    output = render_records(template, records)
    write_output(output, stdout if stdout is not None else sys.stdout)


def main() -> int:
    """Console entry point. Returns the process exit status."""
    config = ConfigManager()
    try:
        setup_logging(config.get_log_level())
    except EcrLoginError as e:
        setup_logging(LOG_LEVELS[DEFAULT_LOG_LEVEL])
        print(e.format_message(), file=sys.stderr)
        return 1

    try:
        run(config=config)
    except EcrLoginError as e:
        print(e.format_message(), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        log_exception(logger, "❌ ecr-login failed unexpectedly", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
