import sys

from seqera_batch.cli import main

sys.exit(main())
