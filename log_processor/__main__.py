import sys

from log_processor.main import main

if __name__ == '__main__':
    sys.exit(main())
