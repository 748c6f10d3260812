import sys

from auto_request_review.main import main

sys.exit(main())
