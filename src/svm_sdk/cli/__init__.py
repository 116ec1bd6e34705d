"""
SVM SDK Command-Line Interface
==============================

This package provides command-line tools for the SVM SDK:

- **sasm**: SVM assembler
- **svm**: SVM virtual machine
- **sdisasm**: SVM disassembler

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["sasm", "svm", "sdisasm"]
