"""每个看板一组 Redis 键：事件列表、序号计数器、快照"""


def events_key(board_id: int) -> str:
    return f"board:{int(board_id)}:events"


def sequence_key(board_id: int) -> str:
    return f"board:{int(board_id)}:seq"


def snapshot_key(board_id: int) -> str:
    return f"board:{int(board_id)}:snapshot"
