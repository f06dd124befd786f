import sys

from protoc_gen_md.main import main

sys.exit(main())
