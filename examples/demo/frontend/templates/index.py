"""Landing page."""

TITLE = "tinybundler demo"


def default() -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
<title>{TITLE}</title>
<link rel="stylesheet" href="@/css/site.css">
</head>
<body>
<h1>{TITLE}</h1>
<p id="out">computing...</p>
<script type="module" src="@/js/main.ts"></script>
<script>"@/js/banner.ts?inline"</script>
</body>
</html>"""
