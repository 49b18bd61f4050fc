import os
import sys

os.environ.setdefault("STOREFRONT_CLI", "1")

from storefront.cli import main  # noqa: E402

sys.exit(main())
