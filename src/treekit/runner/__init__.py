from .cmd import ArgParser, Cmd, CmdBuilder, SpecCmdOutput

__all__ = ["ArgParser", "Cmd", "CmdBuilder", "SpecCmdOutput"]
