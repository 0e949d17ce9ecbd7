def main() -> None:
    """パッケージエントリポイント。cli.main() に委譲する。

    pyproject.toml の [project.scripts] は toolbatch.cli:main を直接参照するため、
    この関数はプログラムから toolbatch.main() として呼び出す場合に使う。
    """
    from toolbatch.cli import main as cli_main

    cli_main()
