"""Demo web application exercised by the browser harness."""
