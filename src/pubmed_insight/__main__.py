import sys

from pubmed_insight.cli import main

sys.exit(main())
