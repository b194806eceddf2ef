"""Nested template, written to docs/intro.html."""


def render() -> str:
    return """<html>
<head><link rel="stylesheet" href="@/css/site.css"></head>
<body><h1>Intro</h1><script type="module" src="@/js/main.ts"></script></body>
</html>"""
