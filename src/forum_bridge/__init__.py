"""Forum Bridge - Import forum/CMS content into a discussion platform."""

import logging
import warnings

__version__ = "0.1.0"
__author__ = "Forum Bridge Team"
__license__ = "Apache-2.0"

# Keep driver and ORM chatter out of the import progress output
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
logging.getLogger("pymysql").setLevel(logging.WARNING)

warnings.filterwarnings("ignore", module="pymysql")
