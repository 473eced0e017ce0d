from code_commenter.core.app_factory import create_app

app = create_app()
