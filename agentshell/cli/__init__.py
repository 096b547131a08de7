"""CLI 模块 - Typer 命令行入口。"""
