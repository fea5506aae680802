from perch import Block


class Panel(Block, name="panel"):
    heading: str = "Panel"


class Notice(Panel, name="notice"):
    level: str = "info"
