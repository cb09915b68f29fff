import typing

Initial = typing.NewType("Initial", str)
LineUserId = typing.NewType("LineUserId", str)
ReplyToken = typing.NewType("ReplyToken", str)

PermissionId = typing.NewType("PermissionId", str)
ShiftId = typing.NewType("ShiftId", str)
IsoTimestamp = typing.NewType("IsoTimestamp", str)
