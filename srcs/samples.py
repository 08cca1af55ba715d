"""
Sample programs for leakscope

Small leaky snippets per language, used by ``leakscope --sample``.
"""

from type_defs import LanguageTag

C_SAMPLE = """#include <stdio.h>
#include <stdlib.h>
#include <string.h>

char *helper_leak(void) {
    char *p = malloc(128);
    strcpy(p, "helper leaked buffer");
    return p;
}

int main(void) {
    char *a = malloc(100);
    strcpy(a, "This will be leaked (a)");

    char *b = malloc(200);
    strcpy(b, "This will be freed (b)");

    char *c = malloc(50);
    strcpy(c, "Leaked (c)");

    char *h = helper_leak();

    char *d = malloc(300);
    strcpy(d, "This will be freed (d)");

    free(b);
    free(d);

    return 0;
}
"""

CPP_SAMPLE = """#include <iostream>

int* createArray(int size) {
    int *arr = new int[size];
    for (int i = 0; i < size; i++) {
        arr[i] = i * 2;
    }
    return arr;
}

void processData() {
    int* ptr = new int(10);
    ptr = new int(20);
    delete ptr;
}

int main() {
    int* numbers = createArray(10);
    int* x = new int(64);
    int* y = new int(128);
    int* z = new int(256);

    delete y;

    processData();

    return 0;
}
"""

JAVASCRIPT_SAMPLE = """function createLeak() {
    const arr = new Array(1000);
    const buffer = new ArrayBuffer(1024);
    const obj = new Object();
    return arr;
}

function processData() {
    const data = [];
    for (let i = 0; i < 100; i++) {
        let row = new Array(100);
        data.push(row);
    }
}

let cache = {};
cache = null;

createLeak();
processData();
"""

PYTHON_SAMPLE = """import sys


def create_leak():
    data = [0] * 1000
    buffer = bytearray(1024)
    d = {}
    return data


def process_data():
    arr = []
    for i in range(100):
        row = [0] * 100
        arr.append(row)


class Node:
    def __init__(self):
        self.ref = None


def create_circular():
    a = Node()
    b = Node()
    a.ref = b
    b.ref = a


cache = dict()
cache = None

create_leak()
process_data()
create_circular()
"""

JAVA_SAMPLE = """import java.util.*;

public class MemoryLeak {
    private static List<int[]> cache = new ArrayList<>();

    public static void createLeak() {
        int[] arr = new int[1000];
        cache.add(arr);
    }

    public static void processData() {
        byte[] buffer = new byte[1024];
        ArrayList<Integer> list = new ArrayList<>();
        for (int i = 0; i < 100; i++) {
            list.add(i);
        }
    }

    public static void main(String[] args) {
        createLeak();
        processData();
    }
}
"""

RUST_SAMPLE = """use std::rc::Rc;
use std::cell::RefCell;

fn create_leak() {
    let vec = vec![0; 1000];
    let boxed = Box::new(42);
    // vec and boxed are never dropped explicitly
}

fn process_data() {
    let buffer = vec![0u8; 1024];
    let rc = Rc::new(RefCell::new(42));
}

struct Node {
    next: Option<Rc<RefCell<Node>>>,
}

fn create_circular() {
    let a = Rc::new(RefCell::new(Node { next: None }));
    let b = Rc::new(RefCell::new(Node { next: None }));
    a.borrow_mut().next = Some(b.clone());
    b.borrow_mut().next = Some(a.clone());
    // the cycle keeps both nodes alive
}

fn main() {
    create_leak();
    process_data();
    create_circular();
}
"""

GO_SAMPLE = """package main

import "fmt"

func createLeak() {
    arr := make([]int, 1000)
    buffer := make([]byte, 1024)
    m := make(map[string]int)
}

func processData() {
    data := make([]int, 0, 100)
    for i := 0; i < 100; i++ {
        data = append(data, i)
    }
}

// The goroutine blocks forever on the unbuffered channel
func goroutineLeak() {
    ch := make(chan int)
    go func() {
        ch <- 1
    }()
}

func main() {
    createLeak()
    processData()
    goroutineLeak()
    fmt.Println("done")
}
"""

SAMPLES = {
    LanguageTag.C: C_SAMPLE,
    LanguageTag.CPP: CPP_SAMPLE,
    LanguageTag.JAVASCRIPT: JAVASCRIPT_SAMPLE,
    LanguageTag.PYTHON: PYTHON_SAMPLE,
    LanguageTag.JAVA: JAVA_SAMPLE,
    LanguageTag.RUST: RUST_SAMPLE,
    LanguageTag.GO: GO_SAMPLE,
}


def get_sample(language) -> str:
    """Sample program for a language, the C sample when none exists."""
    return SAMPLES.get(LanguageTag.parse(language), C_SAMPLE)
