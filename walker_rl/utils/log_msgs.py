RED = "\033[1;31m"
GREEN = "\033[1;32m"
YELLOW = "\033[1;33m"
BLUE = "\033[1;34m"
MAGENTA = "\033[1;35m"
CYAN = "\033[1;36m"
RESET = "\033[0m"

color_dict = {"red": RED, "green": GREEN,
              "yellow": YELLOW, "blue": BLUE,
              "magenta": MAGENTA, "cyan": CYAN}

def _emit(tag, message, color, prefix=""):
    color = set_color(color)
    text = f"{prefix}{color}{tag}:{RESET} {message}"
    print(text)
    return text

def info_msg(message, color=CYAN):
    return _emit("Info", message, color)

def warn_msg(message, color=YELLOW):
    return _emit("Warning", message, color)

def error_msg(message, color=RED):
    return _emit("Error", message, color, prefix="\n")

def success_msg(message, color=GREEN):
    return _emit("Success", message, color)

def set_color(color):
    if color in color_dict:
        return color_dict[color]
    if color in color_dict.values():
        return color
    raise ValueError(f"Color {color} is not supported.")