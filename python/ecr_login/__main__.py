import sys

from ecr_login.main import main

sys.exit(main())
