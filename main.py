import os
import sys

from facelandmarks.cli import main


if __name__ == "__main__":
    # Reduce TF/MediaPipe verbosity if desired
    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")
    sys.exit(main())
