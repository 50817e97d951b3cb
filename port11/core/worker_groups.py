from __future__ import annotations


class WorkerGroup:
    DEBUGGER_PLAY = "debugger_play"
    DEBUGGER_STOP = "debugger_stop"
