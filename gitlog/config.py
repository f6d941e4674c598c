"""
Configuration module for the git log extractor
Handles environment settings and credential lookup
"""

import os
import logging
from typing import Optional
import keyring
from dotenv import load_dotenv
from platformdirs import user_cache_dir

from gitlog.exceptions import ExtractError

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

# Configuration constants
APP_NAME = "gitlog-extract"
KEYRING_SERVICE = "gitlog-extract"


def get_password(username: str, env_fallback: Optional[str] = None) -> Optional[str]:
  """
  Retrieve a clone password from the environment or the system keyring

  Args:
    username: Account the password belongs to (keyring lookup key)
    env_fallback: Optional environment variable name checked first

  Returns:
    The password or None if not found
  """
  if env_fallback:
    value = os.getenv(env_fallback)
    if value:
      logger.debug(f"Password for '{username}' retrieved from environment variable")
      return value

  try:
    value = keyring.get_password(KEYRING_SERVICE, username)
    if value:
      logger.debug(f"Password for '{username}' retrieved from keyring")
      return value
  except Exception as e:
    logger.warning(f"Failed to retrieve password for '{username}' from keyring: {e}")

  logger.warning(f"Password for '{username}' not found in environment or keyring")
  return None


def set_password(username: str, value: str) -> None:
  """
  Store a clone password in the system keyring

  Args:
    username: Account the password belongs to
    value: The password
  """
  try:
    keyring.set_password(KEYRING_SERVICE, username, value)
    logger.info(f"Password for '{username}' stored successfully")
  except Exception as e:
    logger.error(f"Failed to store password for '{username}': {e}")
    raise


def resolve_credentials(
  username: Optional[str], password: Optional[str]
) -> Optional[tuple[str, str]]:
  """
  Work out basic-auth credentials from arguments, environment and keyring

  Returns:
    (username, password) or None when basic auth should not be used
  """
  username = username or ExtractorConfig.USERNAME
  if not username:
    return None

  password = password or get_password(username, "GITLOG_PASSWORD")
  if not password:
    logger.warning(
      f"No password for '{username}', falling back to SSH agent / credential helpers"
    )
    return None

  return username, password


def parse_context_lines(value) -> int:
  """Validate a context line count from the command line or environment.

  Args:
      value: Count as an int or a decimal string

  Returns:
      The count as a non-negative int
  """
  try:
    count = int(value)
  except (TypeError, ValueError):
    raise ExtractError(
      f"Context lines must be an integer, got {value!r}",
      name="INVALID_CONTEXT_LINES",
      source="config",
    ) from None
  if count < 0:
    raise ExtractError(
      f"Context lines must not be negative, got {count}",
      name="INVALID_CONTEXT_LINES",
      source="config",
    )
  return count

class ExtractorConfig:
  """Extractor configuration settings"""

  # Credentials
  USERNAME = os.getenv("GITLOG_USERNAME")

  # Transient clone location
  CLONE_ROOT = os.getenv("GITLOG_CLONE_ROOT") or user_cache_dir(APP_NAME)

  # Diff settings
  # Raw value; parse_context_lines validates it at run time
  CONTEXT_LINES = os.getenv("GITLOG_CONTEXT_LINES", "3")

  # Logging
  LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


# Utility for storing a password in the keyring
if __name__ == "__main__":
  import sys

  if len(sys.argv) != 3:
    print("Usage: python -m gitlog.config <username> <password>")
    sys.exit(1)

  set_password(sys.argv[1], sys.argv[2])
  print(f"✓ Password for '{sys.argv[1]}' stored in keyring")
