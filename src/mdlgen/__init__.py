"""MdlGen: compile COLLADA scenes into directly loadable .mdl models."""

__version__ = "0.3.0"
