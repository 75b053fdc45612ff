#!/usr/bin/env python3
"""
R2 Upload Signer

Run this script to sign uploads, serve the signing endpoint, or probe
the configured bucket.

Usage:
    python run.py sign track.mp3 --size 5242880   # Print a presigned upload
    python run.py serve --port 8788               # Run the HTTP endpoint
    python run.py probe                           # Probe the bucket
    python run.py -c custom.json probe -j out.json
"""

import sys
from upload_signer.cli import main

if __name__ == "__main__":
    sys.exit(main())
