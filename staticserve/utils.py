def human_size(n: int) -> str:
    units = ["B", "KB", "MB", "GB", "TB", "PB", "EB"]
    x = float(n)
    for u in units:
        if x < 1024.0:
            return f"{x:.2f}{u}"
        x /= 1024.0
    return f"{x:.2f}ZB"
