"""
End-to-end test harness for the Terraform MCP Server.

Builds the server image, runs the same tool-call tables over the stdio and
streamable HTTP transports, and tears every container down afterwards.
"""

__version__ = "0.1.0"
