import sys

from upload_signer.cli import main

sys.exit(main())
