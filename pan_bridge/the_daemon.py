import daemon

from pan_bridge.__main__ import main

with daemon.DaemonContext():
    main()
