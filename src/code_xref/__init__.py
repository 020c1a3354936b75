"""code-xref: cross-reference analysis for parsed codebases."""
