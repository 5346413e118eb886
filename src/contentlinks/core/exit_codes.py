from __future__ import annotations

OK = 0
ERR_FATAL = 1
ERR_USAGE = ERR_FATAL
ERR_INTERNAL = ERR_FATAL
