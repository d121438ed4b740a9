pytest_plugins = ["testworlds.pytest_plugin"]
